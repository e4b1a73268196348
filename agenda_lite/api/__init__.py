"""HTTP surface for agenda_lite (aiohttp application, routes, middleware)."""
