"""AssetHub: upload orchestration for binary assets in object storage."""
