from linkshortener.dao.s3.qr_artifact_s3_store import QRArtifactS3Store


__all__ = [
    'QRArtifactS3Store',
]
