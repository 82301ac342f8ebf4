import sys

from warehouse_tracker.utils.cron_client import trigger_daily_utilization

if __name__ == "__main__":
    # Meant for an external scheduler; reads CRON_SECRET_KEY and WAREHOUSE_API_URL
    result = trigger_daily_utilization()
    print(result)
    sys.exit(0 if result.get("ok") else 1)
