"""
Service context extraction for distributed logging.

Identifies the emitting process so that settlement logs from several API
workers can be told apart.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'settlement-service')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    task_id = str(os.getpid())
    metadata_uri = os.getenv('ECS_CONTAINER_METADATA_URI_V4', '')
    if metadata_uri:
        # http://169.254.170.2/v4/{task_id}-{timestamp}
        try:
            task_id = metadata_uri.split('/')[-1].split('-')[0][:8]
        except IndexError:
            task_id = 'ecs'

    return f'{service_name}@{deploy_env}:{task_id}'
