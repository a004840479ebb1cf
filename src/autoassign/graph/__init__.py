"""Assignment graph: state, routing, and workflow."""
