#!/usr/bin/env python3
import json
import os
import aws_cdk as cdk
from crawlerconf.settings import load_settings
from stacks.athena_rds_stack import AthenaRdsQueryStack

app = cdk.App()

env = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION")
)

# Environment variables (SECRET_ARN, GLUE_CRAWLER_NAME, ...) with `-c crawler='{...}'` overrides
overrides = app.node.try_get_context("crawler") or {}
if isinstance(overrides, str):
    overrides = json.loads(overrides)
settings = load_settings(**overrides)

AthenaRdsQueryStack(
    app,
    "AthenaRdsQuery",
    settings=settings,
    env=env,
    description="Athena over RDS Postgres - Glue crawler configured from Secrets Manager"
)

app.synth()
