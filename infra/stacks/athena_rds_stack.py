from pathlib import Path

from aws_cdk import (
    Aws,
    BundlingOptions,
    CfnOutput,
    CustomResource,
    Duration,
    RemovalPolicy,
    Stack,
    aws_athena as athena,
    aws_events as events,
    aws_events_targets as targets,
    aws_glue as glue,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_logs as logs,
    custom_resources as cr,
)
from constructs import Construct

from crawlerconf.settings import DeploymentSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Only the runtime package and its requirements go into the Lambda asset
ASSET_EXCLUDES = [
    "cdk.out",
    ".git",
    ".venv",
    "**/__pycache__",
    "infra",
    "scripts",
    "tests",
    "data",
    "*.md",
]


class AthenaRdsQueryStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, settings: DeploymentSettings, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        secret_arn = settings.secret_arn
        # name part of the ARN, for CloudTrail calls that pass the secret by name
        secret_name = secret_arn.split(":secret:", 1)[-1]

        # -------- Glue Data Catalog: database populated by the crawler --------
        glue_db = glue.CfnDatabase(
            self,
            "GlueDatabase",
            catalog_id=Aws.ACCOUNT_ID,
            database_input=glue.CfnDatabase.DatabaseInputProperty(
                name=settings.glue_database_name,
                description="Glue database for Postgres RDS",
            ),
        )

        # -------- IAM Role: Glue crawler --------
        glue_crawler_role = iam.Role(
            self,
            "GlueCrawlerRole",
            assumed_by=iam.ServicePrincipal("glue.amazonaws.com"),
            description="Role the JDBC crawler runs as",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSGlueServiceRole"),
            ],
        )
        glue_crawler_role.add_to_policy(iam.PolicyStatement(
            actions=["secretsmanager:GetSecretValue"],
            resources=[secret_arn, f"{secret_arn}-??????"],
        ))
        glue_crawler_role.add_to_policy(iam.PolicyStatement(
            actions=["rds:DescribeDBInstances"],
            resources=["*"],
        ))

        # -------- IAM Role: crawler sync Lambda --------
        lambda_role = iam.Role(
            self,
            "LambdaExecutionRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description="Reads the database secret and configures the Glue crawler",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
            ],
        )
        # secret_arn may be a partial ARN; Secrets Manager appends a 6-character suffix
        lambda_role.add_to_policy(iam.PolicyStatement(
            actions=["secretsmanager:GetSecretValue"],
            resources=[secret_arn, f"{secret_arn}-??????"],
        ))
        lambda_role.add_to_policy(iam.PolicyStatement(
            actions=["glue:GetCrawler", "glue:CreateCrawler", "glue:UpdateCrawler", "glue:DeleteCrawler"],
            # any crawler name: a Delete after a rename targets the previous name
            resources=[f"arn:{Aws.PARTITION}:glue:{Aws.REGION}:{Aws.ACCOUNT_ID}:crawler/*"],
        ))
        lambda_role.add_to_policy(iam.PolicyStatement(
            actions=["iam:PassRole"],
            resources=[glue_crawler_role.role_arn],
            conditions={"StringEquals": {"iam:PassedToService": "glue.amazonaws.com"}},
        ))

        # -------- Lambda: shared sync logic for deploy time and runtime triggers --------
        runtime_settings = settings.model_copy(update={"crawler_role_arn": glue_crawler_role.role_arn})
        environment = runtime_settings.to_environment()

        sync_log_group = logs.LogGroup(
            self,
            "CrawlerSyncLogGroup",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        sync_fn = _lambda.Function(
            self,
            "FetchSecretsAndConfigureCrawler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="crawlerconf.handler.lambda_handler",
            code=_lambda.Code.from_asset(
                str(PROJECT_ROOT),
                exclude=ASSET_EXCLUDES,
                bundling=BundlingOptions(
                    image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                    command=[
                        "bash",
                        "-c",
                        "pip install --no-cache-dir -r requirements.txt -t /asset-output"
                        " && cp -r crawlerconf /asset-output/",
                    ],
                ),
            ),
            # room for every retry inside the sync deadline
            timeout=Duration.seconds(int(settings.deadline_seconds) + 30),
            memory_size=256,
            environment=environment,
            role=lambda_role,
            log_group=sync_log_group,
        )

        # -------- Deploy-time trigger: custom resource fails the deployment on error --------
        provider = cr.Provider(
            self,
            "CrawlerSyncProvider",
            on_event_handler=sync_fn,
        )
        crawler_sync = CustomResource(
            self,
            "GlueCrawler",
            service_token=provider.service_token,
            resource_type="Custom::GlueCrawlerSync",
            # any settings change re-runs the sync on the next deployment
            properties={"Settings": environment},
        )
        crawler_sync.node.add_dependency(glue_db)

        # -------- Runtime triggers: schedule + secret changes --------
        events.Rule(
            self,
            "CrawlerSyncSchedule",
            description="Re-sync crawler configuration with the current database secret",
            schedule=events.Schedule.expression(settings.sync_schedule),
            targets=[targets.LambdaFunction(sync_fn)],
        )
        events.Rule(
            self,
            "SecretChangeRule",
            description="Re-sync crawler configuration when the database secret changes",
            event_pattern=events.EventPattern(
                source=["aws.secretsmanager"],
                detail_type=["AWS API Call via CloudTrail"],
                detail={
                    "eventSource": ["secretsmanager.amazonaws.com"],
                    "eventName": ["PutSecretValue", "UpdateSecret", "RotateSecret"],
                    "requestParameters": {
                        "secretId": [{"prefix": secret_arn}, {"prefix": secret_name}],
                    },
                },
            ),
            targets=[targets.LambdaFunction(sync_fn)],
        )

        # -------- Athena named queries --------
        athena.CfnNamedQuery(
            self,
            "First10RecordsQuery",
            database=glue_db.ref,
            query_string="SELECT * FROM test_table LIMIT 10;",
            name="first_10_records_query",
            description="Query to retrieve the first 10 records from test_table",
        )
        athena.CfnNamedQuery(
            self,
            "ShowAllTablesQuery",
            database=glue_db.ref,
            query_string=(
                "SELECT tablename FROM pg_catalog.pg_tables "
                "WHERE schemaname != 'pg_catalog' AND schemaname != 'information_schema';"
            ),
            name="show_all_tables_query",
            description="Query to show all tables in the database",
        )

        # -------- Outputs --------
        CfnOutput(self, "GlueDatabaseOutput", value=glue_db.ref, description="Glue Database Name")
        CfnOutput(self, "GlueCrawlerOutput", value=crawler_sync.ref, description="Glue Crawler Name")

        self.sync_function_name = sync_fn.function_name
        self.glue_crawler_role_arn = glue_crawler_role.role_arn
