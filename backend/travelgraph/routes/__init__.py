"""HTTP routes for travelgraph."""
