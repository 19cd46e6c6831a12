"""vidfetch - download videos referenced by web pages.

Site support comes from handler plugins; transfers are delegated to
progressive HTTP, rtmpdump and ffmpeg backends.
"""

__app_name__ = "vidfetch"
__version__ = "1.26.0"
