"""DockDock web app."""
