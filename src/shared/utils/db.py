from protean.domain import Domain


def setup_db(domain: Domain):
    """Create collections and indexes for every aggregate"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] == "mongodb":
                # Make sure every aggregate has its database model constructed
                #   before the provider walks the registry for indexes.
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                provider._create_database_artifacts()


def drop_db(domain: Domain):
    """Drop every aggregate collection"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] == "mongodb":
                provider._drop_database_artifacts()
