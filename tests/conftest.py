import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DeliveryOrderProcessorUri", "https://delivery.example.test")
os.environ.setdefault("OrderItemsReserverUri", "https://reserver.example.test/")
os.environ.setdefault("ServiceBusConnectionString", "redis://localhost:6379/0")
os.environ.setdefault("ServiceBusQueueName", "orders")
os.environ.setdefault("STOREFRONT_DB_URL", "sqlite:///./test_storefront.db")
os.environ.setdefault("STOREFRONT_SESSION_SECRET", "test_session_secret")
os.environ.setdefault("NOTIFICATIONS_BEST_EFFORT", "false")
