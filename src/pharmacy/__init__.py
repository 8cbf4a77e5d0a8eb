"""Online pharmacy marketplace core: order ledger, reviews and ratings, back-office analytics."""
