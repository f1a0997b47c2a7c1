"""Account top-up payments: order creation, checkout and signature verification."""

__version__ = "1.0.0"
