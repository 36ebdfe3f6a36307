import random

# propagation retries: 15s, 30s, 60s ... capped at 10 minutes
PROPAGATION_BASE_SECONDS = 15
PROPAGATION_CAP_SECONDS = 600


def propagation_countdown(retries: int) -> int:
    delay = min(PROPAGATION_CAP_SECONDS, PROPAGATION_BASE_SECONDS * 2 ** max(0, retries))
    return delay + random.randint(0, delay // 4)
