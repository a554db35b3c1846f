"""forge-ops — health monitoring, daily briefings and outage alerts."""
