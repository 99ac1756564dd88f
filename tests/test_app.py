from app import create_app
from rosbridge import RosbridgeStreamer


def test_status_route_and_json_errors():
    streamer = RosbridgeStreamer(endpoint_url=None)
    app = create_app(streamer)
    assert app.extensions["rosbridge_streamer"] is streamer

    client = app.test_client()
    response = client.get("/stream/status")
    assert response.status_code == 200
    body = response.get_json()
    assert body["connection"]["status"] == "no_connection"
    assert set(body["topics"]) == {"phone", "headphone", "face"}

    missing = client.get("/nope")
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "not found"}
