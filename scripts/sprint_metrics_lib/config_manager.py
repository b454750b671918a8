"""
Configuration manager with secure credential storage using system keyring
"""

import os
import json
import keyring
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from .models import DISCIPLINE_FIELD_ID

# Settings that can be overridden from the environment
ENV_OVERRIDES = {
    "jira_username": "JIRA_USERNAME",
    "jira_endpoint_prefix": "JIRA_ENDPOINT_PREFIX",
    "spreadsheet_id": "GOOGLE_SPREADSHEET",
    "tickets_range": "GOOGLE_SPREADSHEET_TICKETS_WR",
    "sprints_range": "GOOGLE_SPREADSHEET_SPRINTS_WR",
    "tickets_gid": "GOOGLE_SPREADSHEET_TICKETS_GID",
    "sprints_gid": "GOOGLE_SPREADSHEET_SPRINTS_GID",
    "credentials_file": "GOOGLE_CREDENTIALS_FILE",
}

REQUIRED_SETTINGS = [
    "jira_username",
    "jira_endpoint_prefix",
    "spreadsheet_id",
    "tickets_range",
    "sprints_range",
]

DEFAULTS = {
    "tickets_range": "Tickets!A:K",
    "sprints_range": "Sprints!A:C",
    "tickets_gid": 0,
    "sprints_gid": 0,
    "credentials_file": "credentials.json",
    "discipline_field": DISCIPLINE_FIELD_ID,
}


class ConfigManager:
    """Manages configuration and credentials for Jira Metrics sync"""

    CONFIG_FILE = Path.home() / ".jira-metrics-config.json"
    SERVICE_NAME = "jira-metrics"

    def __init__(self, config_file: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        if config_file is not None:
            self.CONFIG_FILE = Path(config_file)
        self.environ = os.environ if environ is None else environ

    def credentials_exist(self) -> bool:
        """Check if credentials are configured"""
        try:
            settings = self._merged_settings()
        except ValueError:
            return False

        if not settings.get('jira_username') or not settings.get('jira_endpoint_prefix'):
            return False

        return bool(self._jira_token())

    def save_credentials(self, jira_endpoint_prefix: str, jira_username: str, jira_token: str,
                         spreadsheet_id: str, **settings: Any) -> None:
        """Save the token to keyring (encrypted) and the rest to the config file"""
        keyring.set_password(self.SERVICE_NAME, "jira_token", jira_token)

        config = self._load_config_file()
        config.update({
            "jira_endpoint_prefix": jira_endpoint_prefix,
            "jira_username": jira_username,
            "spreadsheet_id": spreadsheet_id,
            "jira_token_configured_at": datetime.now().isoformat()
        })
        config.update({k: v for k, v in settings.items() if v not in (None, "")})

        self.CONFIG_FILE.write_text(json.dumps(config, indent=2))
        print(f"[OK] Configuration saved to {self.CONFIG_FILE}")
        print("[OK] Jira token stored securely in system keyring")

    def load_settings(self) -> Dict[str, Any]:
        """Load settings from config file, environment and keyring"""
        settings = self._merged_settings()

        missing = [key for key in REQUIRED_SETTINGS if not settings.get(key)]
        if missing:
            raise ValueError(f"Missing settings: {', '.join(missing)}. Run --config first.")

        token = self._jira_token()
        if not token:
            raise ValueError("Jira token not configured. Run --config first.")
        settings["jira_token"] = token

        return settings

    def save_last_run(self, project: str, year: str) -> None:
        """Remember project and year for the next run"""
        if not self.CONFIG_FILE.exists():
            return

        config = self._load_config_file()
        config["last_project"] = project
        config["last_year"] = year
        self.CONFIG_FILE.write_text(json.dumps(config, indent=2))

    def first_run_setup(self) -> None:
        """Interactive wizard for first-time setup"""
        print("=" * 60)
        print("Jira Metrics - First-Time Setup")
        print("=" * 60)
        print()

        jira_endpoint_prefix = input("Jira URL (e.g., https://company.atlassian.net): ").strip()
        if not jira_endpoint_prefix:
            print("[ERROR] Jira URL is required")
            return

        jira_username = input("Jira username / email: ").strip()
        if not jira_username:
            print("[ERROR] Jira username is required")
            return

        print()
        print("Jira API Token:")
        print("  Get your API token: https://id.atlassian.com/manage-profile/security/api-tokens")
        jira_token = input("Jira API token: ").strip()
        if not jira_token:
            print("[ERROR] Jira API token is required")
            return

        print()
        spreadsheet_id = input("Google spreadsheet ID: ").strip()
        if not spreadsheet_id:
            print("[ERROR] Spreadsheet ID is required")
            return

        print()
        print("Press Enter to use defaults.")
        tickets_range = input(f"Tickets range [{DEFAULTS['tickets_range']}]: ").strip()
        sprints_range = input(f"Sprints range [{DEFAULTS['sprints_range']}]: ").strip()
        tickets_gid = input("Tickets sheet gid [0]: ").strip()
        sprints_gid = input("Sprints sheet gid [0]: ").strip()
        credentials_file = input(f"Service account key file [{DEFAULTS['credentials_file']}]: ").strip()

        try:
            self.save_credentials(
                jira_endpoint_prefix,
                jira_username,
                jira_token,
                spreadsheet_id,
                tickets_range=tickets_range,
                sprints_range=sprints_range,
                tickets_gid=int(tickets_gid) if tickets_gid else None,
                sprints_gid=int(sprints_gid) if sprints_gid else None,
                credentials_file=credentials_file,
            )
        except ValueError:
            print("[ERROR] Sheet gids must be numbers")
            return

        print()
        print("[OK] Setup complete!")
        print()

    def _jira_token(self) -> Optional[str]:
        token = self.environ.get("JIRA_TOKEN")
        if token:
            return token
        return keyring.get_password(self.SERVICE_NAME, "jira_token")

    def _merged_settings(self) -> Dict[str, Any]:
        """Defaults, then config file, then environment"""
        settings: Dict[str, Any] = dict(DEFAULTS)
        settings.update(self._load_config_file())

        for key, env_name in ENV_OVERRIDES.items():
            value = self.environ.get(env_name)
            if value:
                settings[key] = value

        for key in ("tickets_gid", "sprints_gid"):
            try:
                settings[key] = int(settings[key])
            except (TypeError, ValueError):
                raise ValueError(f"Setting {key} must be a number, got {settings[key]!r}")

        return settings

    def _load_config_file(self) -> Dict:
        """Load config file from disk"""
        if not self.CONFIG_FILE.exists():
            return {}

        try:
            return json.loads(self.CONFIG_FILE.read_text())
        except json.JSONDecodeError:
            return {}
