"""Core library for a WeChat official account admin server: logging, caching, request guards, menus, auto-replies, materials and reply delivery."""

__version__ = "0.1.0"