import os
from dataclasses import dataclass

import yaml
import keyring

from settings_schema import SettingsSchema

APP_VERSION = "1.0.0"
DEFAULT_DB_PATH = "workout.db"
DEFAULT_YAML_PATH = "settings.yaml"


class YamlConfig:
    """Load and save settings to a YAML file.

    With ``ENCRYPT_SETTINGS=1`` the connection string is kept in the system
    keyring and the file only records that it is set.
    """

    SENSITIVE_KEYS = {
        "database_url",
    }

    def __init__(self, path: str = DEFAULT_YAML_PATH, encrypt: bool | None = None) -> None:
        self.path = path
        if encrypt is None:
            encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"
        self.encrypt = encrypt
        self.service = "pumping-iron"

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if self.encrypt:
            for key in list(data.keys()):
                if key not in self.SENSITIVE_KEYS:
                    continue
                secret = keyring.get_password(self.service, key)
                if secret is None:
                    data.pop(key, None)
                else:
                    data[key] = secret
        return data

    def save(self, data: dict) -> None:
        out = dict(data)
        if self.encrypt:
            for key in self.SENSITIVE_KEYS & out.keys():
                keyring.set_password(self.service, key, str(out[key]))
                out[key] = True
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f, sort_keys=True)


@dataclass
class AppConfig:
    db_path: str
    yaml_path: str
    settings: SettingsSchema

    @classmethod
    def load(cls, yaml_path: str | None = None) -> "AppConfig":
        """Resolve configuration from YAML with environment overrides.

        ``DB_PATH`` and ``LOG_LEVEL`` take precedence over the file.
        """
        yaml_path = yaml_path or os.environ.get("SETTINGS_PATH") or DEFAULT_YAML_PATH
        data = YamlConfig(yaml_path).load()
        db_path = os.environ.get("DB_PATH") or data.get("db_path") or DEFAULT_DB_PATH
        known = {k: v for k, v in data.items() if k in SettingsSchema.model_fields}
        if os.environ.get("LOG_LEVEL"):
            known["log_level"] = os.environ["LOG_LEVEL"]
        return cls(str(db_path), yaml_path, SettingsSchema(**known))
