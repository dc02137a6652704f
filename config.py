import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite:///./giftledger.db")
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "USD")

    # Gift cards
    GIFT_CARD_EXPIRATION_MONTHS = data.get("GIFT_CARD_EXPIRATION_MONTHS", 12)  # 0 = never expires
    GIFT_CARD_CODE_LENGTH = data.get("GIFT_CARD_CODE_LENGTH", 12)  # Characters, excluding dashes
    EXPIRING_GIFT_CARDS_DAYS_AHEAD = data.get("EXPIRING_GIFT_CARDS_DAYS_AHEAD", 30)

    # Promotions
    EXPIRING_PROMOTIONS_DAYS_AHEAD = data.get("EXPIRING_PROMOTIONS_DAYS_AHEAD", 7)

    # Ledger reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
