from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nAI HEALTH:')
print(client.get('/health/ai').json())

print('\nANALYZE (no image):')
resp = client.post('/analyze-issue', files={'description': (None, 'pothole near the bus stop')})
print(resp.status_code, resp.json())

print('\nANALYZE STRICT:')
resp = client.post(
    '/analyze-issue/strict',
    files={'image': ('photo.jpg', b'\xff\xd8\xff\xe0 not really a jpeg', 'image/jpeg')},
    data={'description': 'large crack with exposed rebar near crossing'},
)
print(resp.status_code, resp.json())
