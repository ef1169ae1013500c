"""External processes: git and the review server transport."""
