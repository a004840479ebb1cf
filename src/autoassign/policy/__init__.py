"""Pure decision policies: eligibility and refactor cadence."""
