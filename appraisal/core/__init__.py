"""Pure investment-appraisal algorithms. No I/O, no concurrency."""
