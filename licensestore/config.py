import os
from datetime import timedelta


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    REFRESH_TOKEN_DAYS = int(os.getenv("REFRESH_TOKEN_DAYS", "7"))

    # Remote record store; when unset orders live in the local SQL database
    POCKETBASE_URL = os.getenv("POCKETBASE_URL", "")
    POCKETBASE_ADMIN_EMAIL = os.getenv("POCKETBASE_ADMIN_EMAIL", "")
    POCKETBASE_ADMIN_PASSWORD = os.getenv("POCKETBASE_ADMIN_PASSWORD", "")
    ORDERS_COLLECTION = os.getenv("ORDERS_COLLECTION", "store_orders")
    BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "10"))

    PAYMENT_PROVIDER = os.getenv("PAYMENT_PROVIDER", "paypal")
    PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
    PAYPAL_SECRET = os.getenv("PAYPAL_SECRET", "")
    PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox")
    SHOP_NAME = os.getenv("SHOP_NAME", "Store Name")
    SHOP_NOTES = os.getenv("SHOP_NOTES", "")
    SHOP_TERMS = os.getenv("SHOP_TERMS", "")

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")
