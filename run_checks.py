import os

os.environ.setdefault("USE_MOCK_DB", "true")

from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)
citizen = {"X-User-ID": "citizen-1", "X-User-Role": "CITIZEN"}

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

print('\nSUBMIT REPORT:')
resp = client.post('/reports', headers=citizen, json={
    "title": "Overflowing dustbin",
    "type": "overflow_dustbin",
    "latitude": 12.9716,
    "longitude": 77.5946,
})
print(resp.status_code, resp.json())

print('\nSELF VOTE (expect 403):')
resp = client.post(f"/reports/{resp.json()['id']}/support", headers=citizen)
print(resp.status_code, resp.json())
