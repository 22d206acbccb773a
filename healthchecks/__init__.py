"""Runtime health checks for a CMS installation."""
