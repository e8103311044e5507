from infrawatch.infrastructure.feed.di import FeedProvider
from infrawatch.infrastructure.feed.launch_feed import HttpLaunchFeed, parse_launch_feed

__all__ = ["FeedProvider", "HttpLaunchFeed", "parse_launch_feed"]
