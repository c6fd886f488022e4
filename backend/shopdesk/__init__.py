"""ShopDesk order management backend."""
