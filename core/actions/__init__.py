"""Built-in actions.

Each module exposes ``create_plugin(Plugin, framework_path)``; the framework
loads them from ``actions.yaml`` like any other plugin.
"""
