import json
import os
import uuid

import httpx  # to install: pip install httpx

from utilities import SIGNATURE_HEADER, compute_signature


def main():
    url = "http://localhost:8000/events"
    secret = os.environ.get("RELAY_WEBHOOK_SECRET", "change-me")

    # signed exactly like the upstream provider signs its callbacks
    body = json.dumps({
        "object": "user",
        "entry": [{"id": str(uuid.uuid4()), "changes": [{"field": "status", "value": "online"}]}],
    }).encode()
    headers = {"Content-Type": "application/json", SIGNATURE_HEADER: compute_signature(body, secret)}
    print("Client Message: ", body.decode())

    resp = httpx.post(url, content=body, headers=headers)
    print("Server:", resp.status_code, resp.text)


if __name__ == "__main__":
    main()
