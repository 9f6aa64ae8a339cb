import json
import sys

from crawlerconf.aws import make_client
from crawlerconf.models import REDACTED
from crawlerconf.settings import load_settings

settings = load_settings()
glue = make_client("glue", settings)

crawler = glue.get_crawler(Name=settings.glue_crawler_name)["Crawler"]
print("Crawler:", crawler["Name"], "| state:", crawler.get("State"))
print("Database:", crawler.get("DatabaseName"))
print("Targets:", json.dumps(crawler.get("Targets", {}).get("JdbcTargets", []), indent=2))

raw = crawler.get("Configuration")
if not raw:
    print("No configuration set")
    sys.exit(1)

config = json.loads(raw)
if "PASSWORD" in config:
    config["PASSWORD"] = REDACTED
print("Configuration:", json.dumps(config, indent=2))

# url should match the current secret's host/port/dbname
print("Last crawl:", crawler.get("LastCrawl", {}).get("Status"))
