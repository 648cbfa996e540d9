# Discord Tracker - CI/CD pipeline status in Discord
"""Discord Tracker: CI/CD pipeline progress notifications.

This package posts one Discord embed per pipeline and edits it as steps report in.

Core Components:
- State Management: JSON snapshot file shared across CI job steps
- Discord Integration: REST client and embed rendering
- Tracker: init / step / complete / fail orchestration
"""

__version__ = "1.0.0"
