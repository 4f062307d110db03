"""Admin dashboard for the AquaFeed feed-formulation platform."""
