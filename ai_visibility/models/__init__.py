from ai_visibility.models.kv_entry import KvEntry

__all__ = ["KvEntry"]
