from flask import Flask

from cocoacycle.modules.auth.routes import bp as auth_bp
from cocoacycle.modules.catalog.routes import bp as catalog_bp
from cocoacycle.modules.cart.routes import bp as cart_bp
from cocoacycle.modules.orders.routes import bp as orders_bp
from cocoacycle.modules.admin.routes import bp as admin_bp


def register_api_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(catalog_bp, url_prefix="/api")
    app.register_blueprint(cart_bp, url_prefix="/api")
    app.register_blueprint(orders_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": "CocoaCycle API",
            "version": "0.1.0",
            "endpoints": {
                "auth": ["/auth/signup", "/auth/login", "/auth/logout", "/users/me"],
                "catalog": ["/storefront", "/products", "/products/<cycle_product_id>"],
                "cart": ["/cart", "/cart/items", "/cart/items/<id>"],
                "orders": ["/checkout", "/orders", "/orders/<id>"],
                "admin": [
                    "/admin/dashboard",
                    "/admin/seasons",
                    "/admin/products",
                    "/admin/products/options",
                    "/admin/products/<id>/availability",
                    "/admin/purchase-cycles",
                    "/admin/purchase-cycles/<id>/products",
                    "/admin/purchase-cycles/<id>/available-products",
                    "/admin/cycle-products/<id>",
                    "/admin/orders",
                    "/admin/orders/statuses",
                    "/admin/customers",
                ],
            },
        }, 200
