from .config import DEFAULT_SETTINGS_FILE, Settings, StoreOptions, default_data_dir, load_settings

__all__ = ["DEFAULT_SETTINGS_FILE", "Settings", "StoreOptions", "default_data_dir", "load_settings"]
