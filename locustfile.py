from locust import HttpUser, task, between
import os
import random


FEATURES = os.getenv("LOCUST_FEATURES", "new-dashboard,beta-search,dark-mode").split(",")
USER_TYPES = ["free", "trial", "premium", "enterprise"]
LOCATIONS = ["US", "CA", "UK", "EU", "APAC"]
PAGES = ["/", "/pricing", "/dashboard", "/settings"]


class WidgetUser(HttpUser):
    """Simulates embedded widgets polling the public endpoints."""

    wait_time = between(0.5, 2.5)

    def on_start(self):
        self.headers = {"Content-Type": "application/json"}
        self.attributes = {
            "userId": f"locust-{random.randint(1, 1_000_000)}",
            "userType": random.choice(USER_TYPES),
            "location": random.choice(LOCATIONS),
            "environment": os.getenv("LOCUST_ENVIRONMENT", "production"),
        }

    @task(4)
    def check_features(self):
        self.client.post(
            "/api/v1/public/features/check/",
            json={
                "features": random.sample(FEATURES, k=random.randint(1, len(FEATURES))),
                "userAttributes": self.attributes,
            },
            headers=self.headers,
        )

    @task(3)
    def widget_alerts(self):
        attributes = dict(self.attributes, currentPage=random.choice(PAGES))
        self.client.post(
            "/api/v1/public/alerts/widget/",
            json={"userAttributes": attributes},
            headers=self.headers,
        )

    @task(1)
    def anonymous_alerts(self):
        self.client.get("/api/v1/public/alerts/widget/")

    @task(1)
    def preflight(self):
        self.client.options(
            "/api/v1/public/features/check/",
            headers={
                "Origin": "https://embedding-site.example",
                "Access-Control-Request-Method": "POST",
            },
        )


# Useful for headless CSV output: `locust --headless -u 50 -r 5 -t 2m -f locustfile.py --csv out --host http://localhost:8000`
