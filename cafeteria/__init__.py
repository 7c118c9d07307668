"""Campus cafeteria ordering service."""
