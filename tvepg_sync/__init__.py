"""Swiss IPTV playlist import and tvepg.eu guide scraping."""

__version__ = "0.1.0"
