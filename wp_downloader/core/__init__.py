"""Version resolution, install decisions and the plugin adapter."""
