"""Review server workflows: profiles, queries, checkout, push, review, squads."""
