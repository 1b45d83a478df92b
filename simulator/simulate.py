import time, argparse, json, datetime, urllib.request, urllib.error
from ras_monitor.services.mock_data import MOCK_RANGES, random_value
def post(api, path, payload, api_key):
    req = urllib.request.Request(api + path, data=json.dumps(payload).encode('utf-8'),
                                 headers={'Content-Type': 'application/json', 'X-API-Key': api_key})
    with urllib.request.urlopen(req, timeout=10) as resp:
        return json.loads(resp.read().decode())
def build_payload(device_uid, sensor_types):
    now = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return {"device_uid": device_uid,
            "readings": [{"sensor_type": s, "value": random_value(s), "timestamp": now} for s in sensor_types]}
def main():
    p = argparse.ArgumentParser(description="Stream mock RAS sensor readings to the ingest API")
    p.add_argument('--api', default='http://localhost:8000')
    p.add_argument('--api-key', required=True, help='project API key')
    p.add_argument('--device', default='RAS-001', help='device_uid registered on the project')
    p.add_argument('--sensors', default=','.join(MOCK_RANGES), help='comma separated sensor types')
    p.add_argument('--rate', type=float, default=5.0)
    args = p.parse_args()
    sensors = [s.strip() for s in args.sensors.split(',') if s.strip()]
    print(f"Streaming to {args.api} for device {args.device} every {args.rate}s... CTRL+C to stop")
    while True:
        payload = build_payload(args.device, sensors)
        try:
            result = post(args.api, "/readings/", payload, args.api_key)
            alerts = [r["alert_message"] for r in result["data"] if r["is_alert"]]
            print(f"Sent {result['count']} readings", *alerts, sep="\n  ")
        except (urllib.error.URLError, OSError) as e: print("Error:", e)
        time.sleep(args.rate)
if __name__ == "__main__": main()
