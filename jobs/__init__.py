"""Background jobs: dramatiq broker and claim notification actors."""
