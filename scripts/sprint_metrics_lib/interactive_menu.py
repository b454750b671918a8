"""
Interactive CLI menu for picking the sprint to sync
"""

from typing import List, Optional

from .models import BasicSprint


class InteractiveMenu:
    """Interactive menu for choosing one sprint from the filtered list"""

    def prompt_sprint_selection(self, sprints: List[BasicSprint]) -> Optional[BasicSprint]:
        """Show a numbered sprint list, return the choice or None if cancelled"""
        if not sprints:
            print("No closed sprints found for the selected year.")
            return None

        print("Choose a Sprint:")
        print()
        for i, sprint in enumerate(sprints, 1):
            print(f"  {i}. {sprint.name} (ID: {sprint.id})")
        print()

        # Most recent sprint is listed last
        default_idx = len(sprints)

        while True:
            response = input(f"Selection [{default_idx}] (q to cancel): ").strip().lower()

            if response == 'q':
                return None

            if not response:
                selected = sprints[default_idx - 1]
                print(f"  ✓ Selected: {selected.name}")
                return selected

            try:
                selection = int(response)
            except ValueError:
                print("  Invalid input, please enter a number")
                continue

            if 1 <= selection <= len(sprints):
                selected = sprints[selection - 1]
                print(f"  ✓ Selected: {selected.name}")
                return selected

            print(f"  Invalid selection, choose 1-{len(sprints)}")
