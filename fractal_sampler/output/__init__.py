"""Hand-off of sample records to the plotting collaborator."""
