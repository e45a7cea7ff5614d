class RedisKeys:
    """Centralised Redis key pattern definitions"""

    # Presence patterns
    VISITOR_DATA = "livestats:visitor:{session_id}"
    ACTIVE_SET = "livestats:active"
    PAGE_SET = "livestats:page:{page_hash}"
    PAGE_SET_PREFIX = "livestats:page:"
    DEVICE_SET = "livestats:device:{device}"

    # History patterns
    HISTORY_METRIC = "livestats:history:{time_range}:{metric}"
    HISTORY_PAGE = "livestats:history:{time_range}:page:{page_hash}"

    @classmethod
    def visitor_key(cls, session_id: str) -> str:
        """Generate the session record key for a connection id."""
        return cls.VISITOR_DATA.format(session_id=session_id)

    @classmethod
    def page_key(cls, page_hash: str) -> str:
        return cls.PAGE_SET.format(page_hash=page_hash)

    @classmethod
    def page_pattern(cls) -> str:
        """SCAN match pattern covering every page index set."""
        return cls.PAGE_SET_PREFIX + "*"

    @classmethod
    def page_hash_from_key(cls, key: str) -> str:
        return key[len(cls.PAGE_SET_PREFIX) :]

    @classmethod
    def device_key(cls, device: str) -> str:
        return cls.DEVICE_SET.format(device=device)

    @classmethod
    def history_key(cls, time_range: str, metric: str) -> str:
        """Generate the sorted-set key for a core metric window."""
        if metric not in ("total", "mobile", "desktop", "tablet"):
            raise ValueError(f"Unknown history metric: {metric}")
        return cls.HISTORY_METRIC.format(time_range=time_range, metric=metric)

    @classmethod
    def history_page_key(cls, time_range: str, page_hash: str) -> str:
        return cls.HISTORY_PAGE.format(time_range=time_range, page_hash=page_hash)
