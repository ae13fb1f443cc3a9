"""Cart, wishlist and user profile service."""
