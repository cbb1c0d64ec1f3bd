from s3_downloader import __version__

__all__ = ["__version__"]
