import httpx


def main():
    url = "http://localhost:8000/sse"
    print("Awaiting events... (press Ctrl+C to exit)")
    try:
        with httpx.stream("GET", url, timeout=None) as resp:
            for line in resp.iter_lines():
                # history replay first, then live events
                if line.startswith("data:"):
                    print("Received:", line[len("data:"):].strip())
    except KeyboardInterrupt:
        print("Disconnected.")


if __name__ == "__main__":
    main()
