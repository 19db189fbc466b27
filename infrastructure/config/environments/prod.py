"""Production environment configuration."""

import os

prod_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "eu-west-1",
    "db_port": 3306,
    "db_user": "lambdaiam",
    "db_admin_secret_name": "prod/delivery/db-admin",
    "db_user_secret_name": "prod/delivery/db-user",
    "handlers_dir": "../api-handlers",
    "handler_namespace": "com.delivery.api.handlers",
    "db_init_script": "scripts/dbinit.sql",
    # Alarms in prod must reach someone; override with -c alertEmail=...
    "alert_email": os.environ.get("DELIVERY_ALERT_EMAIL", ""),
    "log_retention_days": 60,
    "log_level": "INFO",
    "tags": {
        "Environment": "prod",
        "Project": "DeliveryApi",
        "Owner": "DeliveryTeam",
        "CostCenter": "Delivery",
    },
}
