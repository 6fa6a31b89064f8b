#!/usr/bin/env python3
"""
Seed script: creates a small travel community through the public API.

Creates:
  • 8 users (password Trip2024!)
  • A follow graph (each user follows 3 others)
  • 3 posts per user
  • Some likes and comments across posts
  • A few friend requests, half of them accepted

Run after docker compose up:
  python scripts/seed_data.py --api-url http://localhost:8000/triptalk
"""
import argparse
import random
import time

import httpx

PASSWORD = "Trip2024!"

BASE_USERS = [
    ("alice_abroad", "Alice Chen", "Lisbon"),
    ("backpack_bob", "Bob Martinez", "Mexico City"),
    ("carol_roams", "Carol Singh", "Jaipur"),
    ("dave_dives", "Dave Kim", "Busan"),
    ("eve_explores", "Eve Johnson", "Cape Town"),
    ("frank_flies", "Frank Williams", "Dublin"),
    ("grace_goes", "Grace Li", "Chengdu"),
    ("henry_hikes", "Henry Brown", "Queenstown"),
]

SAMPLE_POSTS = [
    "Sunrise over the Alfama rooftops. Worth every early alarm.",
    "Night train from Vienna to Venice: tiny bunk, huge views.",
    "Found a tapas bar with no menu. The owner just brings whatever is fresh.",
    "Hiked the Routeburn Track in two days. Bring more snacks than you think.",
    "Street tacos at 2am are a human right.",
    "The Pink City at golden hour is unreal.",
    "Diving off Jeju: visibility 20m and a very curious turtle.",
    "Table Mountain cable car queue tip: go before 8.",
    "Rainy day in Dublin means bookshops and a long lunch.",
    "Hot pot in Chengdu. My tongue is still numb.",
    "Packing cubes changed my life. No regrets.",
    "Cheapest flights are always on Tuesdays? Not this week.",
]

SAMPLE_COMMENTS = [
    "Adding this to my list!",
    "Wow, great shot.",
    "How long did you stay?",
    "I was there last year, loved it.",
    "Jealous!",
]


def report(resp: httpx.Response, what: str) -> dict:
    if resp.is_success:
        return resp.json()
    print(f"  HTTP {resp.status_code} on {what}: {resp.text}")
    return {}


def wait_for_api(api_url: str, retries: int = 15) -> None:
    print(f"Waiting for API at {api_url} ...")
    for _ in range(retries):
        try:
            if httpx.get(f"{api_url}/test", timeout=5).is_success:
                print("  API is ready!\n")
                return
        except httpx.HTTPError:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {api_url} after {retries} retries")


def main(api_url: str) -> None:
    wait_for_api(api_url)

    # ── Register and log in every user (one cookie jar each) ───────────────
    print("Creating users...")
    sessions: dict[str, httpx.Client] = {}
    for username, display_name, location in BASE_USERS:
        client = httpx.Client(base_url=api_url, timeout=10)
        report(
            client.post(
                "/users",
                json={
                    "username": username,
                    "password": PASSWORD,
                    "displayName": display_name,
                    "email": f"{username}@example.com",
                },
            ),
            f"register {username}",
        )
        if report(
            client.post("/login", json={"username": username, "password": PASSWORD}),
            f"login {username}",
        ).get("loggedIn"):
            client.put("/profile", json={"location": location, "bio": "Always packing."})
            sessions[username] = client
            print(f"  ✓ {username}")
        else:
            client.close()
            print(f"  ✗ Failed to log in {username}")

    if len(sessions) < 2:
        print("Not enough users to seed a graph, aborting")
        return
    usernames = list(sessions)

    try:
        # ── Follow graph ───────────────────────────────────────────────────
        print("\nCreating follow relationships...")
        for follower, client in sessions.items():
            others = [u for u in usernames if u != follower]
            for followee in random.sample(others, k=min(3, len(others))):
                client.post("/follow", json={"usernameToFollow": followee})
        print("  ✓ Follow graph created")

        # ── Posts ──────────────────────────────────────────────────────────
        print("\nCreating posts...")
        post_ids: list[str] = []
        pool = SAMPLE_POSTS * 2
        random.shuffle(pool)
        for i, (username, client) in enumerate(sessions.items()):
            for text in pool[i * 3:i * 3 + 3]:
                post = report(client.post("/contents", json={"text": text}), "create post")
                if post.get("id"):
                    post_ids.append(post["id"])
        print(f"  ✓ {len(post_ids)} posts created")

        # ── Likes and comments ─────────────────────────────────────────────
        print("\nAdding likes and comments...")
        likes = comments = 0
        for post_id in post_ids:
            for username in random.sample(usernames, k=random.randint(0, 4)):
                if sessions[username].post(f"/contents/{post_id}/like").is_success:
                    likes += 1
            if random.random() < 0.5:
                commenter = random.choice(usernames)
                sessions[commenter].post(
                    f"/contents/{post_id}/comments",
                    json={"text": random.choice(SAMPLE_COMMENTS)},
                )
                comments += 1
        print(f"  ✓ {likes} likes, {comments} comments added")

        # ── Friend requests ────────────────────────────────────────────────
        print("\nSending friend requests...")
        accepted = 0
        for sender, recipient in zip(usernames, usernames[1:]):
            request = report(
                sessions[sender].post("/friend-requests", json={"toUsername": recipient}),
                f"friend request {sender} -> {recipient}",
            )
            if request.get("id") and random.random() < 0.5:
                sessions[recipient].post(f"/friend-requests/{request['id']}/accept")
                accepted += 1
        print(f"  ✓ {len(usernames) - 1} requests sent, {accepted} accepted")
    finally:
        for client in sessions.values():
            client.close()

    # ── Summary ────────────────────────────────────────────────────────────
    first = usernames[0]
    print("\n" + "=" * 60)
    print("Seed complete! Try:\n")
    print(f"# Log in as '{first}' and read the feed:")
    print(f"  curl -s -c jar.txt -X POST '{api_url}/login' \\")
    print("    -H 'Content-Type: application/json' \\")
    print(f"    -d '{{\"username\": \"{first}\", \"password\": \"{PASSWORD}\"}}'")
    print(f"  curl -s -b jar.txt '{api_url}/feed' | python3 -m json.tool\n")
    print("# Check Jaeger traces: http://localhost:16686")
    print("# Check MinIO: http://localhost:9001 (minioadmin/minioadmin)")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the tripTalk API")
    parser.add_argument(
        "--api-url", default="http://localhost:8000/triptalk", help="API base URL incl. prefix"
    )
    args = parser.parse_args()
    main(args.api_url.rstrip("/"))
