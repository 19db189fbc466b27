"""Staging environment configuration."""

import os

staging_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "eu-west-1",
    "db_port": 3306,
    "db_user": "lambdaiam",
    "db_admin_secret_name": "staging/delivery/db-admin",
    "db_user_secret_name": "staging/delivery/db-user",
    "handlers_dir": "../api-handlers",
    "handler_namespace": "com.delivery.api.handlers",
    "db_init_script": "scripts/dbinit.sql",
    "alert_email": os.environ.get("DELIVERY_ALERT_EMAIL", ""),
    "log_retention_days": 30,
    "log_level": "INFO",
    "tags": {
        "Environment": "staging",
        "Project": "DeliveryApi",
        "Owner": "DeliveryTeam",
    },
}
