"""
Static catalog of every metric the exporter can emit.

Order matters: the renderer emits metrics in the order declared here, and
keys missing from this table are never rendered.
"""
from collections import namedtuple

GAUGE = "gauge"

MetricSpec = namedtuple("MetricSpec", ["key", "type", "help"])

METRIC_CATALOG = (
    # dimensions
    MetricSpec("space_usage_media", GAUGE, "Disk space used by media attachments in bytes"),
    MetricSpec("space_usage_postgresql", GAUGE, "Disk space used by the PostgreSQL database in bytes"),
    MetricSpec("space_usage_redis", GAUGE, "Memory used by Redis in bytes"),
    # instance
    MetricSpec("domain_count", GAUGE, "Number of known federated domains"),
    MetricSpec("user_count", GAUGE, "Number of local users"),
    MetricSpec("status_count", GAUGE, "Number of local statuses"),
    # instance activity
    MetricSpec("statuses_this_week", GAUGE, "Statuses created during the current week"),
    MetricSpec("logins_this_week", GAUGE, "User logins during the current week"),
    MetricSpec("registrations_this_week", GAUGE, "New registrations during the current week"),
    MetricSpec("statuses_last_week", GAUGE, "Statuses created during the previous week"),
    MetricSpec("logins_last_week", GAUGE, "User logins during the previous week"),
    MetricSpec("registrations_last_week", GAUGE, "New registrations during the previous week"),
    # measures
    MetricSpec("active_users_last_30_days", GAUGE, "Active users over the last 30 days"),
    MetricSpec("active_users_yesterday", GAUGE, "Active users yesterday"),
    MetricSpec("new_users_last_30_days", GAUGE, "New users over the last 30 days"),
    MetricSpec("new_users_yesterday", GAUGE, "New users yesterday"),
    MetricSpec("interactions_last_30_days", GAUGE, "Interactions over the last 30 days"),
    MetricSpec("interactions_yesterday", GAUGE, "Interactions yesterday"),
    MetricSpec("opened_reports_last_30_days", GAUGE, "Reports opened over the last 30 days"),
    MetricSpec("opened_reports_yesterday", GAUGE, "Reports opened yesterday"),
    MetricSpec("resolved_reports_last_30_days", GAUGE, "Reports resolved over the last 30 days"),
    MetricSpec("resolved_reports_yesterday", GAUGE, "Reports resolved yesterday"),
    # nodeinfo
    MetricSpec("active_users_month", GAUGE, "Users active during the last month"),
    MetricSpec("active_users_half_year", GAUGE, "Users active during the last six months"),
    MetricSpec("total_users", GAUGE, "Total number of users"),
    MetricSpec("local_posts", GAUGE, "Total number of local posts"),
)
