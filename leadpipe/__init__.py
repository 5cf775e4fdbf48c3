"""LeadPipe: multi-tenant lead intake and pipeline tracking."""

__version__ = "0.1.0"
