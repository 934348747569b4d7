"""
Per-provider resource templates and the resource-type map.

Every deployable service has exactly one template per provider, with an
economical and a premium variant. The registry checks at construction that
the template set is exhaustive and that every resource type it can emit maps
back to the same service class, so a missing mapping can never surface as a
silent lookup miss at pricing time.
"""
from typing import Any, Dict, Mapping, Optional, Tuple
from dataclasses import dataclass
from types import MappingProxyType

from cloudcost.catalog.service_catalog import ServiceCatalog, default_service_catalog
from cloudcost.domain.cost_models import ALL_PROVIDERS, CostProfile, Provider, SizingTier
from cloudcost.domain.errors import CatalogConfigurationError


_TIER_ORDER = (SizingTier.SMALL, SizingTier.MEDIUM, SizingTier.LARGE)


def _resolve(value: Any, tier: SizingTier) -> Any:
    """A 3-tuple is a (small, medium, large) capacity; anything else is literal."""
    if isinstance(value, tuple) and len(value) == 3:
        return value[_TIER_ORDER.index(tier)]
    if isinstance(value, Mapping):
        return {key: _resolve(inner, tier) for key, inner in value.items()}
    return value


@dataclass(frozen=True)
class UsageKey:
    """One usage-file key of a resource, derived from a usage dimension or a constant."""
    key: str
    dimension: Optional[str] = None
    factor: float = 1.0
    constant: Optional[float] = None
    parent: Optional[str] = None

    def value(self, usage: Mapping[str, float]) -> float:
        if self.constant is not None:
            return self.constant
        return round(float(usage.get(self.dimension, 0.0)) * self.factor, 4)


@dataclass(frozen=True)
class ResourceVariant:
    """A concrete resource type with tier-driven capacity attributes."""
    resource_type: str
    cloud_service: str
    attributes: Mapping[str, Any]
    usage_keys: Tuple[UsageKey, ...] = ()

    def attributes_for(self, tier: SizingTier) -> Dict[str, Any]:
        return {key: _resolve(value, tier) for key, value in self.attributes.items()}


@dataclass(frozen=True)
class ResourceTemplate:
    """Economical and premium variants of one service on one provider."""
    service: str
    provider: Provider
    name: str
    economical: ResourceVariant
    premium: ResourceVariant

    def variant(self, profile: CostProfile) -> ResourceVariant:
        if profile == CostProfile.HIGH_PERFORMANCE:
            return self.premium
        return self.economical

    @property
    def variants(self) -> Tuple[ResourceVariant, ResourceVariant]:
        return (self.economical, self.premium)


@dataclass(frozen=True)
class ResourceTemplateRegistry:
    """Read-only template lookup plus the resource-type to service-class map."""
    templates: Mapping[Tuple[Provider, str], ResourceTemplate]
    resource_type_map: Mapping[str, str]
    provider_attributes: Mapping[Provider, Mapping[str, Any]]

    def validate_against(self, catalog: ServiceCatalog) -> "ResourceTemplateRegistry":
        """
        Check the registry is complete and consistent with the catalog.

        Raises:
            CatalogConfigurationError: If a deployable service lacks a template on
                some provider, a template targets a logical service, or a template
                resource type is absent from (or disagrees with) the type map
        """
        for provider in ALL_PROVIDERS:
            for service_id in catalog.deployable_ids():
                if (provider, service_id) not in self.templates:
                    raise CatalogConfigurationError(
                        f"No {provider.value} resource template for deployable service {service_id}"
                    )
        for (provider, service_id), template in self.templates.items():
            service = catalog.get(service_id)
            if service is None or not service.deployable:
                raise CatalogConfigurationError(
                    f"Resource template for non-deployable service {service_id} ({provider.value})"
                )
            for variant in template.variants:
                mapped = self.resource_type_map.get(variant.resource_type)
                if mapped != service_id:
                    raise CatalogConfigurationError(
                        f"Resource type {variant.resource_type} maps to {mapped}, expected {service_id}"
                    )
        for resource_type, service_id in self.resource_type_map.items():
            service = catalog.get(service_id)
            if service is None or not service.deployable:
                raise CatalogConfigurationError(
                    f"Resource type {resource_type} maps to non-deployable service {service_id}"
                )
        return self

    def template(self, provider: Provider, service_id: str) -> ResourceTemplate:
        template = self.templates.get((provider, service_id))
        if template is None:
            raise CatalogConfigurationError(
                f"No {provider.value} resource template for service {service_id}"
            )
        return template

    def service_for_type(self, resource_type: str) -> Optional[str]:
        return self.resource_type_map.get(resource_type)

    def cloud_service_name(self, provider: Provider, service_id: str) -> str:
        template = self.templates.get((provider, service_id))
        return template.economical.cloud_service if template else service_id


def _v(resource_type: str, cloud_service: str, usage: Tuple[UsageKey, ...] = (), **attributes) -> ResourceVariant:
    return ResourceVariant(resource_type, cloud_service, MappingProxyType(attributes), usage)


_REQUESTS = UsageKey("monthly_requests", "monthly_requests")
_DURATION = UsageKey("request_duration_ms", constant=250)
_STORAGE = UsageKey("storage_gb", "storage_gb")


_AWS = (
    ("compute_container", "app",
     _v("aws_ecs_service", "Amazon ECS/Fargate",
        (UsageKey("monthly_cpu_hours", constant=1460), UsageKey("monthly_memory_gb_hours", constant=2920)),
        launch_type="FARGATE", desired_count=(1, 2, 4), cpu=(256, 512, 1024), memory=(512, 1024, 2048)),
     _v("aws_eks_node_group", "Amazon EKS",
        instance_types=(["t3.medium"], ["m5.large"], ["m5.xlarge"]),
        scaling_config={"desired_size": (2, 3, 6), "min_size": (1, 2, 3), "max_size": (3, 6, 12)})),
    ("compute_serverless", "app",
     _v("aws_lambda_function", "AWS Lambda", (_REQUESTS, _DURATION),
        runtime="nodejs18.x", memory_size=(128, 512, 1024)),
     _v("aws_lambda_function", "AWS Lambda", (_REQUESTS, _DURATION),
        runtime="nodejs18.x", memory_size=(512, 1024, 2048), architectures=["arm64"])),
    ("compute_vm", "web",
     _v("aws_instance", "Amazon EC2", instance_type=("t3.micro", "t3.medium", "m5.large")),
     _v("aws_instance", "Amazon EC2", instance_type=("m5.large", "m5.xlarge", "m5.2xlarge"), ebs_optimized=True)),
    ("relational_database", "db",
     _v("aws_db_instance", "Amazon RDS",
        (UsageKey("monthly_standard_io_requests", "monthly_requests"),),
        engine="postgres", instance_class=("db.t3.micro", "db.t3.medium", "db.m5.large"),
        allocated_storage=(20, 50, 200), multi_az=False),
     _v("aws_rds_cluster", "Amazon Aurora",
        (UsageKey("storage_gb", "storage_gb"), UsageKey("monthly_io_requests", "monthly_requests")),
        engine="aurora-postgresql", engine_mode="provisioned")),
    ("nosql_database", "main",
     _v("aws_dynamodb_table", "DynamoDB",
        (UsageKey("monthly_write_request_units", "monthly_requests", 0.3),
         UsageKey("monthly_read_request_units", "monthly_requests", 0.7), _STORAGE),
        billing_mode="PAY_PER_REQUEST", hash_key="id"),
     _v("aws_dynamodb_table", "DynamoDB", (_STORAGE,),
        billing_mode="PROVISIONED", hash_key="id", read_capacity=(5, 25, 100), write_capacity=(5, 10, 50))),
    ("cache", "cache",
     _v("aws_elasticache_cluster", "ElastiCache",
        engine="redis", node_type=("cache.t3.micro", "cache.t3.medium", "cache.m5.large"), num_cache_nodes=1),
     _v("aws_elasticache_replication_group", "ElastiCache",
        engine="redis", node_type=("cache.m5.large", "cache.m5.xlarge", "cache.r5.xlarge"),
        num_cache_clusters=(2, 2, 3))),
    ("object_storage", "storage",
     _v("aws_s3_bucket", "Amazon S3",
        (UsageKey("storage_gb", "storage_gb", parent="standard"),
         UsageKey("monthly_tier_1_requests", "monthly_requests", 0.1, parent="standard"),
         UsageKey("monthly_tier_2_requests", "monthly_requests", 0.05, parent="standard")),
        force_destroy=True),
     _v("aws_s3_bucket", "Amazon S3",
        (UsageKey("storage_gb", "storage_gb", parent="standard"),
         UsageKey("monthly_tier_1_requests", "monthly_requests", 0.1, parent="standard"),
         UsageKey("monthly_tier_2_requests", "monthly_requests", 0.05, parent="standard")),
        force_destroy=True, object_lock_enabled=True)),
    ("block_storage", "data",
     _v("aws_ebs_volume", "Amazon EBS", availability_zone="us-east-1a", type="gp3", size=(20, 100, 500)),
     _v("aws_ebs_volume", "Amazon EBS", availability_zone="us-east-1a", type="io2",
        size=(50, 200, 1000), iops=(3000, 6000, 16000))),
    ("cdn", "cdn",
     _v("aws_cloudfront_distribution", "CloudFront",
        (UsageKey("us", "data_transfer_gb", parent="monthly_data_transfer_to_internet_gb"),
         UsageKey("us", "monthly_requests", parent="monthly_https_requests")),
        enabled=True, price_class="PriceClass_100"),
     _v("aws_cloudfront_distribution", "CloudFront",
        (UsageKey("us", "data_transfer_gb", parent="monthly_data_transfer_to_internet_gb"),
         UsageKey("us", "monthly_requests", parent="monthly_https_requests")),
        enabled=True, price_class="PriceClass_All")),
    ("load_balancer", "lb",
     _v("aws_lb", "Application Load Balancer",
        (UsageKey("processed_bytes_gb", "data_transfer_gb"),),
        load_balancer_type="application", internal=False),
     _v("aws_lb", "Application Load Balancer",
        (UsageKey("processed_bytes_gb", "data_transfer_gb"),),
        load_balancer_type="application", internal=False, enable_cross_zone_load_balancing=True)),
    ("api_gateway", "api",
     _v("aws_apigatewayv2_api", "API Gateway", (_REQUESTS,), protocol_type="HTTP"),
     _v("aws_api_gateway_rest_api", "API Gateway", (_REQUESTS,))),
    ("networking", "nat",
     _v("aws_nat_gateway", "Amazon VPC", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        connectivity_type="public"),
     _v("aws_nat_gateway", "Amazon VPC", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        connectivity_type="public", secondary_allocation_ids=["eipalloc-secondary"])),
    ("dns", "zone",
     _v("aws_route53_zone", "Route 53", name="example.com"),
     _v("aws_route53_zone", "Route 53", name="example.com", force_destroy=True)),
    ("message_queue", "queue",
     _v("aws_sqs_queue", "Amazon SQS", (_REQUESTS, UsageKey("request_size_kb", constant=64)), fifo_queue=False),
     _v("aws_sqs_queue", "Amazon SQS", (_REQUESTS, UsageKey("request_size_kb", constant=64)),
        fifo_queue=True, name="queue.fifo")),
    ("identity_auth", "users",
     _v("aws_cognito_user_pool", "Amazon Cognito", (UsageKey("monthly_active_users", "monthly_users"),),
        name="users"),
     _v("aws_cognito_user_pool", "Amazon Cognito", (UsageKey("monthly_active_users", "monthly_users"),),
        name="users", user_pool_add_ons={"advanced_security_mode": "ENFORCED"})),
    ("secrets_management", "secret",
     _v("aws_secretsmanager_secret", "Secrets Manager",
        (UsageKey("monthly_requests", "monthly_requests", 0.01),), name="app-secret"),
     _v("aws_secretsmanager_secret", "Secrets Manager",
        (UsageKey("monthly_requests", "monthly_requests", 0.01),), name="app-secret",
        replica={"region": "us-west-2"})),
    ("monitoring", "alarm",
     _v("aws_cloudwatch_metric_alarm", "CloudWatch", comparison_operator="GreaterThanThreshold",
        evaluation_periods=2, metric_name="CPUUtilization", namespace="AWS/EC2", period=300, threshold=80),
     _v("aws_cloudwatch_metric_alarm", "CloudWatch", comparison_operator="GreaterThanThreshold",
        evaluation_periods=2, metric_name="CPUUtilization", namespace="AWS/EC2", period=10, threshold=80)),
    ("logging", "app",
     _v("aws_cloudwatch_log_group", "CloudWatch Logs",
        (UsageKey("monthly_data_ingested_gb", "data_transfer_gb", 0.1),
         UsageKey("storage_gb", "storage_gb", 0.1)),
        retention_in_days=(7, 14, 30)),
     _v("aws_cloudwatch_log_group", "CloudWatch Logs",
        (UsageKey("monthly_data_ingested_gb", "data_transfer_gb", 0.1),
         UsageKey("storage_gb", "storage_gb", 0.1)),
        retention_in_days=(30, 90, 365))),
    ("search_engine", "search",
     _v("aws_opensearch_domain", "Amazon OpenSearch",
        cluster_config={"instance_type": ("t3.small.search", "t3.medium.search", "m6g.large.search"),
                        "instance_count": (1, 2, 3)}),
     _v("aws_opensearch_domain", "Amazon OpenSearch",
        cluster_config={"instance_type": ("r6g.large.search", "r6g.xlarge.search", "r6g.2xlarge.search"),
                        "instance_count": (2, 3, 6)})),
    ("ml_inference_service", "model",
     _v("aws_sagemaker_endpoint_configuration", "Amazon SageMaker",
        production_variants={"instance_type": ("ml.t2.medium", "ml.m5.large", "ml.m5.xlarge"),
                             "initial_instance_count": 1}),
     _v("aws_sagemaker_endpoint_configuration", "Amazon SageMaker",
        production_variants={"instance_type": ("ml.g4dn.xlarge", "ml.g4dn.2xlarge", "ml.g5.4xlarge"),
                             "initial_instance_count": (1, 2, 4)})),
)


_GCP = (
    ("compute_container", "app",
     _v("google_cloud_run_service", "Cloud Run",
        (UsageKey("request_count", "monthly_requests"), UsageKey("average_request_duration_ms", constant=250)),
        location="us-central1"),
     _v("google_container_node_pool", "GKE",
        cluster="primary", node_count=(2, 3, 6),
        node_config={"machine_type": ("e2-standard-2", "e2-standard-4", "n2-standard-8")})),
    ("compute_serverless", "app",
     _v("google_cloudfunctions_function", "Cloud Functions", (_REQUESTS, _DURATION),
        runtime="nodejs18", available_memory_mb=(128, 256, 1024)),
     _v("google_cloudfunctions_function", "Cloud Functions", (_REQUESTS, _DURATION),
        runtime="nodejs18", available_memory_mb=(512, 1024, 2048), min_instances=1)),
    ("compute_vm", "web",
     _v("google_compute_instance", "Compute Engine",
        zone="us-central1-a", machine_type=("e2-micro", "e2-medium", "n2-standard-2")),
     _v("google_compute_instance", "Compute Engine",
        zone="us-central1-a", machine_type=("n2-standard-2", "n2-standard-4", "n2-standard-8"))),
    ("relational_database", "db",
     _v("google_sql_database_instance", "Cloud SQL", (_STORAGE,),
        database_version="POSTGRES_15",
        settings={"tier": ("db-f1-micro", "db-custom-1-3840", "db-custom-4-15360"),
                  "availability_type": "ZONAL"}),
     _v("google_sql_database_instance", "Cloud SQL", (_STORAGE,),
        database_version="POSTGRES_15",
        settings={"tier": ("db-custom-2-7680", "db-custom-4-15360", "db-custom-8-30720"),
                  "availability_type": "REGIONAL"})),
    ("nosql_database", "db",
     _v("google_firestore_database", "Firestore",
        (UsageKey("monthly_document_writes", "monthly_requests", 0.3),
         UsageKey("monthly_document_reads", "monthly_requests", 0.7), _STORAGE),
        location_id="nam5", type="FIRESTORE_NATIVE"),
     _v("google_firestore_database", "Firestore",
        (UsageKey("monthly_document_writes", "monthly_requests", 0.3),
         UsageKey("monthly_document_reads", "monthly_requests", 0.7), _STORAGE),
        location_id="nam5", type="FIRESTORE_NATIVE", point_in_time_recovery_enablement="POINT_IN_TIME_RECOVERY_ENABLED")),
    ("cache", "cache",
     _v("google_redis_instance", "Memorystore", tier="BASIC", memory_size_gb=(1, 2, 5)),
     _v("google_redis_instance", "Memorystore", tier="STANDARD_HA", memory_size_gb=(5, 10, 30))),
    ("object_storage", "storage",
     _v("google_storage_bucket", "Cloud Storage",
        (_STORAGE, UsageKey("monthly_class_a_operations", "monthly_requests", 0.1),
         UsageKey("monthly_class_b_operations", "monthly_requests", 0.05),
         UsageKey("monthly_egress_data_transfer_gb", "data_transfer_gb")),
        location="US-CENTRAL1", storage_class="STANDARD"),
     _v("google_storage_bucket", "Cloud Storage",
        (_STORAGE, UsageKey("monthly_class_a_operations", "monthly_requests", 0.1),
         UsageKey("monthly_class_b_operations", "monthly_requests", 0.05),
         UsageKey("monthly_egress_data_transfer_gb", "data_transfer_gb")),
        location="US", storage_class="MULTI_REGIONAL")),
    ("block_storage", "data",
     _v("google_compute_disk", "Persistent Disk", zone="us-central1-a", type="pd-standard", size=(20, 100, 500)),
     _v("google_compute_disk", "Persistent Disk", zone="us-central1-a", type="pd-ssd", size=(50, 200, 1000))),
    ("cdn", "cdn",
     _v("google_compute_backend_bucket", "Cloud CDN", bucket_name="assets", enable_cdn=True),
     _v("google_compute_backend_bucket", "Cloud CDN", bucket_name="assets", enable_cdn=True,
        cdn_policy={"cache_mode": "CACHE_ALL_STATIC"})),
    ("load_balancer", "lb",
     _v("google_compute_forwarding_rule", "Cloud Load Balancing",
        (UsageKey("monthly_ingress_data_gb", "data_transfer_gb"),),
        region="us-central1", load_balancing_scheme="EXTERNAL"),
     _v("google_compute_forwarding_rule", "Cloud Load Balancing",
        (UsageKey("monthly_ingress_data_gb", "data_transfer_gb"),),
        region="us-central1", load_balancing_scheme="EXTERNAL_MANAGED")),
    ("api_gateway", "api",
     _v("google_api_gateway_gateway", "API Gateway", (_REQUESTS,), gateway_id="api", api_config="default"),
     _v("google_api_gateway_gateway", "API Gateway", (_REQUESTS,), gateway_id="api", api_config="default",
        region="us-central1")),
    ("networking", "nat",
     _v("google_compute_router_nat", "VPC", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        router="router", region="us-central1", nat_ip_allocate_option="AUTO_ONLY"),
     _v("google_compute_router_nat", "VPC", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        router="router", region="us-central1", nat_ip_allocate_option="MANUAL_ONLY")),
    ("dns", "zone",
     _v("google_dns_managed_zone", "Cloud DNS", dns_name="example.com.", visibility="public"),
     _v("google_dns_managed_zone", "Cloud DNS", dns_name="example.com.", visibility="public",
        dnssec_config={"state": "on"})),
    ("message_queue", "queue",
     _v("google_pubsub_topic", "Pub/Sub", (UsageKey("monthly_message_data_tb", "data_transfer_gb", 0.001),),
        name="queue"),
     _v("google_pubsub_topic", "Pub/Sub", (UsageKey("monthly_message_data_tb", "data_transfer_gb", 0.001),),
        name="queue", message_retention_duration="604800s")),
    ("identity_auth", "users",
     _v("google_identity_platform_config", "Identity Platform",
        (UsageKey("monthly_active_users", "monthly_users"),), autodelete_anonymous_users=True),
     _v("google_identity_platform_config", "Identity Platform",
        (UsageKey("monthly_active_users", "monthly_users"),), autodelete_anonymous_users=True,
        mfa={"state": "ENABLED"})),
    ("secrets_management", "secret",
     _v("google_secret_manager_secret", "Secret Manager",
        (UsageKey("monthly_access_operations", "monthly_requests", 0.01),), secret_id="app-secret",
        replication={"auto": {}}),
     _v("google_secret_manager_secret", "Secret Manager",
        (UsageKey("monthly_access_operations", "monthly_requests", 0.01),), secret_id="app-secret",
        replication={"user_managed": {"replicas": {"location": "us-east1"}}})),
    ("monitoring", "alert",
     _v("google_monitoring_alert_policy", "Cloud Monitoring", display_name="cpu", combiner="OR"),
     _v("google_monitoring_alert_policy", "Cloud Monitoring", display_name="cpu", combiner="AND")),
    ("logging", "sink",
     _v("google_logging_project_sink", "Cloud Logging",
        (UsageKey("monthly_logging_data_gb", "data_transfer_gb", 0.1),),
        destination="storage.googleapis.com/logs"),
     _v("google_logging_project_sink", "Cloud Logging",
        (UsageKey("monthly_logging_data_gb", "data_transfer_gb", 0.1),),
        destination="bigquery.googleapis.com/projects/cost-estimate/datasets/logs")),
    ("search_engine", "search",
     _v("google_vertex_ai_index_endpoint", "Vertex AI Vector Search", region="us-central1",
        public_endpoint_enabled=True),
     _v("google_vertex_ai_index_endpoint", "Vertex AI Vector Search", region="us-central1",
        public_endpoint_enabled=False)),
    ("ml_inference_service", "model",
     _v("google_vertex_ai_endpoint", "Vertex AI", location="us-central1", display_name="model"),
     _v("google_vertex_ai_endpoint", "Vertex AI", location="us-central1", display_name="model",
        dedicated_endpoint_enabled=True)),
)


_AZURE = (
    ("compute_container", "app",
     _v("azurerm_container_app", "Container Apps", revision_mode="Single",
        template={"min_replicas": (0, 1, 2), "max_replicas": (2, 5, 10)}),
     _v("azurerm_kubernetes_cluster", "AKS", dns_prefix="app",
        default_node_pool={"vm_size": ("Standard_D2s_v3", "Standard_D4s_v3", "Standard_D8s_v3"),
                           "node_count": (2, 3, 6)})),
    ("compute_serverless", "app",
     _v("azurerm_function_app", "Azure Functions",
        (UsageKey("monthly_executions", "monthly_requests"), UsageKey("execution_duration_ms", constant=250),
         UsageKey("memory_mb", constant=128)),
        app_service_plan_id="consumption"),
     _v("azurerm_function_app", "Azure Functions",
        (UsageKey("monthly_executions", "monthly_requests"), UsageKey("execution_duration_ms", constant=250),
         UsageKey("memory_mb", constant=512)),
        app_service_plan_id="premium")),
    ("compute_vm", "web",
     _v("azurerm_linux_virtual_machine", "Virtual Machines",
        size=("Standard_B1s", "Standard_B2s", "Standard_D2s_v3"), admin_username="azureuser"),
     _v("azurerm_linux_virtual_machine", "Virtual Machines",
        size=("Standard_D2s_v3", "Standard_D4s_v3", "Standard_D8s_v3"), admin_username="azureuser")),
    ("relational_database", "db",
     _v("azurerm_postgresql_flexible_server", "Azure Database for PostgreSQL",
        sku_name=("B_Standard_B1ms", "GP_Standard_D2s_v3", "GP_Standard_D4s_v3"),
        storage_mb=(32768, 65536, 262144)),
     _v("azurerm_postgresql_flexible_server", "Azure Database for PostgreSQL",
        sku_name=("GP_Standard_D2s_v3", "GP_Standard_D4s_v3", "MO_Standard_E8ds_v4"),
        storage_mb=(65536, 131072, 524288), high_availability={"mode": "ZoneRedundant"})),
    ("nosql_database", "db",
     _v("azurerm_cosmosdb_account", "Cosmos DB",
        (UsageKey("monthly_serverless_request_units", "monthly_requests"), _STORAGE),
        offer_type="Standard", capabilities={"name": "EnableServerless"}),
     _v("azurerm_cosmosdb_account", "Cosmos DB", (_STORAGE,),
        offer_type="Standard", enable_automatic_failover=True)),
    ("cache", "cache",
     _v("azurerm_redis_cache", "Azure Cache for Redis", sku_name="Basic", family="C", capacity=(0, 1, 2)),
     _v("azurerm_redis_cache", "Azure Cache for Redis", sku_name="Premium", family="P", capacity=(1, 2, 3))),
    ("object_storage", "storage",
     _v("azurerm_storage_account", "Blob Storage",
        (_STORAGE, UsageKey("monthly_data_transfer_gb", "data_transfer_gb")),
        account_tier="Standard", account_replication_type="LRS"),
     _v("azurerm_storage_account", "Blob Storage",
        (_STORAGE, UsageKey("monthly_data_transfer_gb", "data_transfer_gb")),
        account_tier="Standard", account_replication_type="GRS")),
    ("block_storage", "data",
     _v("azurerm_managed_disk", "Managed Disks", storage_account_type="Standard_LRS", create_option="Empty",
        disk_size_gb=(32, 128, 512)),
     _v("azurerm_managed_disk", "Managed Disks", storage_account_type="Premium_LRS", create_option="Empty",
        disk_size_gb=(64, 256, 1024))),
    ("cdn", "cdn",
     _v("azurerm_cdn_endpoint", "Azure CDN", (UsageKey("monthly_outbound_data_transfer_gb", "data_transfer_gb"),),
        profile_name="cdn"),
     _v("azurerm_cdn_frontdoor_profile", "Azure Front Door",
        (UsageKey("monthly_outbound_data_transfer_gb", "data_transfer_gb"),),
        sku_name="Premium_AzureFrontDoor")),
    ("load_balancer", "lb",
     _v("azurerm_lb", "Azure Load Balancer", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        sku="Standard"),
     _v("azurerm_application_gateway", "Application Gateway",
        (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        sku={"name": "WAF_v2", "tier": "WAF_v2", "capacity": (2, 3, 5)})),
    ("api_gateway", "api",
     _v("azurerm_api_management", "API Management", (UsageKey("monthly_api_calls", "monthly_requests"),),
        publisher_name="cost-estimate", publisher_email="ops@example.com", sku_name="Consumption_0"),
     _v("azurerm_api_management", "API Management", (UsageKey("monthly_api_calls", "monthly_requests"),),
        publisher_name="cost-estimate", publisher_email="ops@example.com",
        sku_name=("Developer_1", "Standard_1", "Premium_1"))),
    ("networking", "nat",
     _v("azurerm_nat_gateway", "Virtual Network", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        sku_name="Standard"),
     _v("azurerm_nat_gateway", "Virtual Network", (UsageKey("monthly_data_processed_gb", "data_transfer_gb"),),
        sku_name="Standard", zones=["1", "2"])),
    ("dns", "zone",
     _v("azurerm_dns_zone", "Azure DNS", name="example.com"),
     _v("azurerm_dns_zone", "Azure DNS", name="example.com", soa_record={"email": "hostmaster.example.com"})),
    ("message_queue", "queue",
     _v("azurerm_servicebus_namespace", "Service Bus", (UsageKey("monthly_messaging_operations", "monthly_requests"),),
        sku="Basic"),
     _v("azurerm_servicebus_namespace", "Service Bus", (UsageKey("monthly_messaging_operations", "monthly_requests"),),
        sku="Premium", capacity=(1, 1, 2))),
    ("identity_auth", "users",
     _v("azurerm_aadb2c_directory", "Entra ID B2C", (UsageKey("monthly_active_users", "monthly_users"),),
        country_code="US", data_residency_location="United States", sku_name="PremiumP1"),
     _v("azurerm_aadb2c_directory", "Entra ID B2C", (UsageKey("monthly_active_users", "monthly_users"),),
        country_code="US", data_residency_location="United States", sku_name="PremiumP2")),
    ("secrets_management", "vault",
     _v("azurerm_key_vault", "Key Vault", (UsageKey("monthly_secrets_operations", "monthly_requests", 0.01),),
        sku_name="standard", tenant_id="00000000-0000-0000-0000-000000000000"),
     _v("azurerm_key_vault", "Key Vault", (UsageKey("monthly_secrets_operations", "monthly_requests", 0.01),),
        sku_name="premium", tenant_id="00000000-0000-0000-0000-000000000000")),
    ("monitoring", "alert",
     _v("azurerm_monitor_metric_alert", "Azure Monitor", frequency="PT5M", severity=3),
     _v("azurerm_monitor_metric_alert", "Azure Monitor", frequency="PT1M", severity=2)),
    ("logging", "logs",
     _v("azurerm_log_analytics_workspace", "Log Analytics",
        (UsageKey("monthly_log_data_ingestion_gb", "data_transfer_gb", 0.1),),
        sku="PerGB2018", retention_in_days=(30, 30, 90)),
     _v("azurerm_log_analytics_workspace", "Log Analytics",
        (UsageKey("monthly_log_data_ingestion_gb", "data_transfer_gb", 0.1),),
        sku="PerGB2018", retention_in_days=(90, 180, 730))),
    ("search_engine", "search",
     _v("azurerm_search_service", "Azure AI Search", sku=("basic", "standard", "standard2"), replica_count=1),
     _v("azurerm_search_service", "Azure AI Search", sku=("standard", "standard2", "standard3"),
        replica_count=(2, 3, 3))),
    ("ml_inference_service", "model",
     _v("azurerm_machine_learning_compute_cluster", "Azure Machine Learning",
        vm_priority="LowPriority", vm_size=("Standard_DS2_v2", "Standard_DS3_v2", "Standard_DS4_v2"),
        scale_settings={"min_node_count": 0, "max_node_count": (1, 2, 4)}),
     _v("azurerm_machine_learning_compute_cluster", "Azure Machine Learning",
        vm_priority="Dedicated", vm_size=("Standard_NC6s_v3", "Standard_NC12s_v3", "Standard_NC24s_v3"),
        scale_settings={"min_node_count": 1, "max_node_count": (2, 4, 8)})),
)


# Resource types the engine may report beside the ones emitted from templates
_AUXILIARY_TYPES: Dict[str, str] = {
    "aws_ecs_task_definition": "compute_container",
    "aws_ecs_cluster": "compute_container",
    "aws_eks_cluster": "compute_container",
    "aws_eks_fargate_profile": "compute_container",
    "aws_alb": "load_balancer",
    "aws_sns_topic": "message_queue",
    "aws_route53_record": "dns",
    "google_cloud_run_v2_service": "compute_container",
    "google_container_cluster": "compute_container",
    "google_compute_backend_service": "load_balancer",
    "google_compute_router": "networking",
    "azurerm_container_app_environment": "compute_container",
    "azurerm_kubernetes_cluster_node_pool": "compute_container",
    "azurerm_virtual_machine": "compute_vm",
    "azurerm_mysql_flexible_server": "relational_database",
    "azurerm_cdn_profile": "cdn",
    "azurerm_service_plan": "compute_serverless",
    "azurerm_linux_function_app": "compute_serverless",
}


_PROVIDER_ATTRIBUTES = {
    Provider.AWS: {},
    Provider.GCP: {},
    Provider.AZURE: {"location": "eastus", "resource_group_name": "cost-estimate-rg"},
}


def default_resource_templates(catalog: Optional[ServiceCatalog] = None) -> ResourceTemplateRegistry:
    """
    Built-in template registry, validated against the given (or default) catalog.

    Raises:
        CatalogConfigurationError: On a duplicate template or an incomplete map
    """
    templates: Dict[Tuple[Provider, str], ResourceTemplate] = {}
    type_map: Dict[str, str] = dict(_AUXILIARY_TYPES)
    for provider, rows in ((Provider.AWS, _AWS), (Provider.GCP, _GCP), (Provider.AZURE, _AZURE)):
        for service_id, name, economical, premium in rows:
            key = (provider, service_id)
            if key in templates:
                raise CatalogConfigurationError(f"Duplicate {provider.value} template for {service_id}")
            templates[key] = ResourceTemplate(service_id, provider, name, economical, premium)
            for variant in (economical, premium):
                type_map.setdefault(variant.resource_type, service_id)
    registry = ResourceTemplateRegistry(
        templates=MappingProxyType(templates),
        resource_type_map=MappingProxyType(type_map),
        provider_attributes=MappingProxyType(
            {provider: MappingProxyType(attrs) for provider, attrs in _PROVIDER_ATTRIBUTES.items()}
        ),
    )
    return registry.validate_against(catalog or default_service_catalog())
