"""balfolk-dj: weighted dance-tree DJ queue for balfolk sessions."""

__version__ = "0.4.0"
