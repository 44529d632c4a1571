"""User interface entry points for the appraisal engine."""
