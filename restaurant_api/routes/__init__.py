from . import auth, dishes, health, orders, users, ws

ROUTERS = (auth.router, users.router, dishes.router, orders.router, health.router, ws.router)
