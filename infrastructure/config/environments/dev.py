"""Development environment configuration."""

import os

dev_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "eu-west-1",
    "db_port": 3306,
    "db_user": "lambdaiam",
    "db_admin_secret_name": "dev/delivery/db-admin",
    "db_user_secret_name": "dev/delivery/db-user",
    # Sibling project holding handler sources, prebuilt archives and Dockerfiles
    "handlers_dir": "../api-handlers",
    "handler_namespace": "com.delivery.api.handlers",
    "db_init_script": "scripts/dbinit.sql",
    "alert_email": "",
    "log_retention_days": 14,
    "log_level": "DEBUG",
    "tags": {
        "Environment": "dev",
        "Project": "DeliveryApi",
        "Owner": "DeliveryTeam",
    },
}
