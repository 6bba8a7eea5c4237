"""
DockDock - Reading tracker onboarding service.

Packages:
- dockdock: Settings, REST collaborator client, CLI, web app
- onboarding: Preference-onboarding wizard (state machine, payload, submission)
"""

__version__ = "1.0.0"
