from cassandra.cluster import Cluster
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy
import asyncio
import os
import logging

logger = logging.getLogger(__name__)

# Global session and cluster
session = None
cluster = None

PREDICTIONS_TABLE = """
    CREATE TABLE IF NOT EXISTS predictions (
        id uuid PRIMARY KEY,
        name text,
        email text,
        student_id text,
        age double,
        gender text,
        course text,
        features text,
        prediction text,
        probabilities text,
        confidence double,
        risk_level text,
        model_version text,
        created_at timestamp
    )
"""


def get_cassandra_config():
    """Load Cassandra config from environment"""
    return {
        'hosts': [h.strip() for h in os.getenv('CASSANDRA_HOST', 'localhost').split(',')],
        'port': int(os.getenv('CASSANDRA_PORT', 9042)),
        'keyspace': os.getenv('CASSANDRA_KEYSPACE', 'student_risk'),
        'username': os.getenv('CASSANDRA_USERNAME'),
        'password': os.getenv('CASSANDRA_PASSWORD'),
        'max_retries': int(os.getenv('CASSANDRA_MAX_RETRIES', 10)),
        'retry_delay': float(os.getenv('CASSANDRA_RETRY_DELAY', 5)),
    }


async def initialize_database():
    """Initialize Cassandra connection with retry"""
    global session, cluster

    if session is not None:
        return session

    config = get_cassandra_config()
    max_retries = config['max_retries']
    retry_delay = config['retry_delay']

    for attempt in range(max_retries):
        try:
            logger.info(f"🔄 Attempting to connect to Cassandra... (attempt {attempt + 1}/{max_retries})")

            auth_provider = None
            if config['username'] and config['password']:
                auth_provider = PlainTextAuthProvider(config['username'], config['password'])

            cluster = Cluster(
                config['hosts'],
                port=config['port'],
                auth_provider=auth_provider,
                load_balancing_policy=DCAwareRoundRobinPolicy(),
                protocol_version=4
            )

            session = cluster.connect()

            try:
                session.execute(f"""
                    CREATE KEYSPACE IF NOT EXISTS {config['keyspace']}
                    WITH replication = {{
                        'class': 'SimpleStrategy',
                        'replication_factor': 1
                    }}
                """)
                logger.info(f"✅ Keyspace {config['keyspace']} created/verified")
            except Exception as keyspace_error:
                logger.warning(f"⚠️ Could not create keyspace (this is OK if it already exists): {keyspace_error}")

            session.set_keyspace(config['keyspace'])
            session.execute(PREDICTIONS_TABLE)
            logger.info(f"✅ Using keyspace: {config['keyspace']}, predictions table ready")
            return session

        except Exception as e:
            logger.error(f"❌ Connection attempt {attempt + 1} failed: {e}")
            if cluster is not None:
                cluster.shutdown()
            session = None
            cluster = None
            if attempt < max_retries - 1:
                logger.info(f"⏳ Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                raise ConnectionError(f"Could not connect to Cassandra after {max_retries} attempts: {e}")


def close_connection():
    """Close Cassandra session and cluster"""
    global session, cluster

    if session:
        session.shutdown()
        session = None

    if cluster:
        cluster.shutdown()
        cluster = None

    logger.info("✅ Database connection closed")
