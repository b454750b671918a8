#!/usr/bin/env python3
"""
Jira Metrics - Sprint sync CLI
Fetches closed sprint reports from Jira and appends them to a Google spreadsheet

Usage:
  python jira-metrics-sync.py --project 123 --year 2021          # Pick one sprint
  python jira-metrics-sync.py --project 123 --year 2021 --all    # Sync the whole year
  python jira-metrics-sync.py --config                           # Configure credentials
"""

import argparse
import sys
import logging
from pathlib import Path
from datetime import datetime

import requests

# Add script directory to path to import sprint_metrics_lib
sys.path.insert(0, str(Path(__file__).parent))

from sprint_metrics_lib import (
    ConfigManager,
    JiraClient,
    SpreadsheetWriter,
    SprintSync,
    InteractiveMenu,
    filter_closed_sprints,
)
from sprint_metrics_lib.api_client import APIError
from sprint_metrics_lib.sheets_client import SpreadsheetError
from sprint_metrics_lib.sync_service import SyncError


def setup_logging() -> Path:
    """Debug log file plus console output, returns the log file path"""
    log_dir = Path.home() / ".jira-metrics" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"jira-metrics-sync-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.WARNING)

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            console
        ]
    )
    return log_file


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Jira Metrics - Sync Sprints from JIRA to Google Sheets",
        epilog="Example: jira-metrics-sync.py --project 123 --year 2021 [--all]"
    )
    parser.add_argument("--config", action="store_true", help="Configure credentials")
    parser.add_argument("-p", "--project", help="Project (rapid view) ID from JIRA")
    parser.add_argument("-y", "--year", default=None, help="Year for filtering Sprints (default: last synced year, else current year)")
    parser.add_argument("-a", "--all", action="store_true", help="Sync ALL Sprints in the year")
    parser.add_argument("--dry-run", action="store_true", help="Print rows instead of writing them")

    args = parser.parse_args()

    log_file = setup_logging()
    logger = logging.getLogger(__name__)
    logger.info(f"Debug log created: {log_file}")
    logger.info(f"Command: {' '.join(sys.argv)}")

    config_mgr = ConfigManager()

    if args.config or not config_mgr.credentials_exist():
        if not args.config:
            print("No credentials found. Running first-time setup...")
            print()
        config_mgr.first_run_setup()

        if not config_mgr.credentials_exist():
            print("[ERROR] Setup cancelled or failed")
            return 1

    try:
        settings = config_mgr.load_settings()
    except ValueError as e:
        print(f"[ERROR] Failed to load configuration: {e}")
        return 1

    project = args.project or settings.get('last_project')
    if not project:
        print("[ERROR] --project is required")
        return 1
    year = str(args.year or settings.get('last_year') or datetime.now().year)

    try:
        jira_client = JiraClient(
            settings['jira_endpoint_prefix'],
            settings['jira_username'],
            settings['jira_token'],
            discipline_field=settings['discipline_field'],
        )
    except ValueError as e:
        print(f"[ERROR] Error creating JIRA client: {e}")
        return 1

    print("Testing Jira connection...")
    if not jira_client.test_connection():
        print("[ERROR] Jira authentication failed")
        print("[ERROR] Check your credentials with: python jira-metrics-sync.py --config")
        return 1

    writer = None
    if not args.dry_run:
        try:
            writer = SpreadsheetWriter.from_service_account(settings['credentials_file'], settings['spreadsheet_id'])
        except SpreadsheetError as e:
            print(f"[ERROR] Error initializing Google Sheets service: {e}")
            return 1

    sync = SprintSync(jira_client, writer, settings)

    try:
        print(f"Fetching Sprints from project {project}...")
        sprints = jira_client.get_sprints(project)

        print(f"Filtering Sprints from year {year}...")
        sprints = filter_closed_sprints(sprints, year)

        if args.all:
            print(f"Syncing all Sprints for {year}...")
            total_rows = sync.sync_all(project, sprints)
        else:
            selected = InteractiveMenu().prompt_sprint_selection(sprints)
            if not selected:
                print("[CANCELLED] Sync cancelled by user")
                return 0
            total_rows = len(sync.sync_sprint(project, selected))

        sync.reset_formats()
        config_mgr.save_last_run(project, year)

    except KeyboardInterrupt:
        print()
        print("[CANCELLED] Sync interrupted by user")
        print(f"[DEBUG] See log file: {log_file}")
        return 130

    except (SyncError, APIError, requests.exceptions.RequestException) as e:
        print()
        print("=" * 60)
        print("ERROR SYNCING SPRINTS")
        print("=" * 60)
        print(f"Error: {e}")
        print()
        print("Troubleshooting:")
        print("  - Check the project ID is a board (rapid view) ID")
        print("  - Verify API credentials with --config")
        print("  - Check the spreadsheet is shared with the service account")
        print(f"  - Check debug log: {log_file}")
        print("=" * 60)
        logger.exception("Sprint sync failed")
        return 1

    print()
    print("=" * 60)
    print("ALL DONE!")
    print("=" * 60)
    print(f"Sprints synced:    {len(sync.synced)}")
    print(f"Rows:              {total_rows}")
    print(f"Discipline cache:  {len(sync.resolver.cache)} issues ({sync.resolver.remote_lookups} remote lookups)")
    print(f"Debug Log:         {log_file}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
