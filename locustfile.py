from locust import HttpUser, task, between
import csv
import os
import random

# Load (wallet, token_mint) pairs dari CSV
pairs = []
with open(os.getenv("CLAIM_PAIRS_CSV", "claim_pairs.csv")) as f:
    for row in csv.DictReader(f):
        pairs.append((row["wallet"], row["token_mint"]))

class BagsClaimUser(HttpUser):
    wait_time = between(1, 2)

    @task(5)
    def check_claim(self):
        wallet, mint = random.choice(pairs)
        self.client.get(
            f"/api/claims/{wallet}/{mint}",
            name="/api/claims/[wallet]/[mint]",
        )

    @task(1)
    def rate_limit_status(self):
        self.client.get("/api/rate-limit")
