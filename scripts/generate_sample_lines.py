import random


def main():
    """
    Print a small synthetic capture, both sides of each connection plus noise.

      python scripts/generate_sample_lines.py | python -m tcp_graph_mcp.cli.correlate
    """
    services = [
        (100, "frontend", "10.42.0.5", 8080),
        (200, "api", "10.42.0.9", 443),
        (300, "postgres", "10.42.0.12", 5432),
    ]
    calls = [(0, 1), (1, 2)]

    lines = []
    for client_idx, server_idx in calls:
        c_pid, c_name, c_ip, _ = services[client_idx]
        s_pid, s_name, s_ip, s_port = services[server_idx]
        for _ in range(3):
            eph = random.randint(32768, 60999)
            lines.append(f"{c_ip}:{eph}->{s_ip}:{s_port}|PID={c_pid} CMD={c_name}")
            lines.append(f"{s_ip}:{s_port}<-{c_ip}:{eph}|PID={s_pid} CMD={s_name}")

    lines.append("127.0.0.1:9000->127.0.0.1:9001|PID=400 CMD=sidecar")
    lines.append("10.42.0.2:6443<-10.42.0.5:40000|PID=1 CMD=k3s-server")
    lines.append("10.42.0.5:41000->140.82.112.3:443|PID=100 CMD=frontend")
    lines.append("garbage")

    random.shuffle(lines)
    for line in lines:
        print(line)


if __name__ == "__main__":
    main()
