from feed_server.records import generate_records, load_records, parse_sequences
from feed_server.server import FeedServer

__all__ = ["FeedServer", "generate_records", "load_records", "parse_sequences"]
