import logging

import pytest
from fastapi.testclient import TestClient

from learnhub.config import Settings
from learnhub.main import create_app


def test_theory_for_concept(client):
    r = client.get('/api/theory/2')
    assert r.status_code == 200
    assert r.json()['conceptId'] == 2
    assert r.json()['content'].startswith('# Self-Supervised Learning')


def test_missing_theory_is_404(client):
    r = client.get('/api/theory/3')
    assert r.status_code == 404
    assert r.json() == {'message': 'Theory content not found'}


def test_non_integer_concept_id_is_400(client):
    r = client.get('/api/code/abc')
    assert r.status_code == 400
    assert r.json()['message'] == 'Invalid request'


def test_code_round_trip(client):
    payload = {
        'conceptId': 3,
        'title': 'SimCLR loss',
        'language': 'python',
        'code': 'def nt_xent(z1, z2, tau=0.5):\n    ...\n',
        'description': 'Normalized temperature-scaled cross entropy.',
    }
    r = client.post('/api/code', json=payload)
    assert r.status_code == 201
    created = r.json()
    assert created['id'] == 3
    listed = client.get('/api/code/3').json()
    assert len(listed) == 1
    match = listed[0]
    for key, value in payload.items():
        assert match[key] == value
    assert match['id'] == created['id']
    assert match['updatedAt'] == created['updatedAt']


def test_code_list_is_empty_for_unknown_concept(client):
    r = client.get('/api/code/42')
    assert r.status_code == 200
    assert r.json() == []


def test_create_theory_requires_integer_concept_id(client):
    r = client.post('/api/theory', json={'conceptId': '3', 'content': '# Contrastive'})
    assert r.status_code == 400
    assert r.json()['errors'][0]['loc'] == ['conceptId']
    ok = client.post('/api/theory', json={'conceptId': 3, 'content': '# Contrastive'})
    assert ok.status_code == 201
    assert ok.json()['id'] == 3
    assert client.get('/api/theory/3').json()['content'] == '# Contrastive'


def test_experiment_keeps_structured_results(client):
    payload = {
        'conceptId': 2,
        'title': 'Rotation pretext on STL-10',
        'results': {'accuracy': 71.2, 'comparison': {'random_init': 52.0}},
        'metrics': {'epochs': [1, 2, 3], 'train_loss': [1.2, 0.9, 0.7]},
    }
    r = client.post('/api/experiments', json=payload)
    assert r.status_code == 201
    listed = client.get('/api/experiments/2').json()
    assert len(listed) == 1
    assert listed[0]['results'] == payload['results']
    assert listed[0]['metrics'] == payload['metrics']
    assert listed[0]['setup'] is None


def test_experiment_metric_series_must_align(client):
    payload = {
        'conceptId': 1,
        'title': 'Broken metrics',
        'metrics': {'epochs': [1, 2, 3], 'val_accuracy': [50, 60]},
    }
    r = client.post('/api/experiments', json=payload)
    assert r.status_code == 400
    assert r.json()['message'] == 'Invalid experiment data'
    assert len(client.get('/api/experiments/1').json()) == 1


def test_experiment_rejects_non_finite_numbers(client):
    body = '{"conceptId": 1, "title": "nan run", "results": {"accuracy": NaN}, "metrics": {"epochs": [1], "loss": [0.5]}}'
    r = client.post('/api/experiments', content=body, headers={'Content-Type': 'application/json'})
    assert r.status_code == 400
    assert r.json()['errors'][0]['loc'] == ['results']

    body = '{"conceptId": 1, "title": "inf run", "metrics": {"epochs": [1], "loss": [Infinity]}}'
    r = client.post('/api/experiments', content=body, headers={'Content-Type': 'application/json'})
    assert r.status_code == 400
    assert r.json()['errors'][0]['loc'][0] == 'metrics'
    assert len(client.get('/api/experiments/1').json()) == 1


def test_experiment_metrics_refuse_strings_and_booleans(client):
    payload = {'conceptId': 1, 'title': 'coerced', 'metrics': {'epochs': ['1', True], 'loss': [0.5, 0.4]}}
    r = client.post('/api/experiments', json=payload)
    assert r.status_code == 400
    assert r.json()['message'] == 'Invalid experiment data'
    ok = client.post('/api/experiments', json={**payload, 'metrics': {'epochs': [1, 2], 'loss': [0.5, 0.4]}})
    assert ok.status_code == 201
    assert ok.json()['metrics'] == {'epochs': [1, 2], 'loss': [0.5, 0.4]}


def test_internal_failure_is_opaque_500(client, monkeypatch, caplog):
    def explode(self, data):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr("learnhub.repositories.CodeRepository.create", explode)
    with caplog.at_level(logging.ERROR, logger="learnhub.api"):
        r = client.post('/api/code', json={'conceptId': 1, 'title': 't', 'language': 'cpp', 'code': 'int main() {}'})
    assert r.status_code == 500
    assert r.json() == {'message': 'Failed to create code implementation'}
    assert 'disk on fire' not in r.text
    assert 'create_code failed {"concept_id": 1}' in caplog.text
    assert 'disk on fire' in caplog.text


def test_serialization_failure_is_json_500(db, monkeypatch, caplog):
    monkeypatch.setattr("learnhub.repositories.PaperRepository.list_all", lambda self: [object()])
    failing = TestClient(create_app(db=db), raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR, logger="learnhub.api"):
        r = failing.get('/api/papers')
    assert r.status_code == 500
    assert r.headers['content-type'].startswith('application/json')
    assert r.json() == {'message': 'Internal server error'}
    assert '"path": "/api/papers"' in caplog.text


@pytest.fixture()
def strict_client(db, monkeypatch):
    monkeypatch.setenv("VALIDATE_CONCEPT_REFS", "true")
    return TestClient(create_app(db=db, config=Settings()))


def test_loose_concept_refs_are_accepted_by_default(client):
    r = client.post('/api/code', json={'conceptId': 999, 'title': 't', 'language': 'python', 'code': 'pass'})
    assert r.status_code == 201


def test_strict_concept_refs_reject_unknown_concept(strict_client):
    r = strict_client.post('/api/experiments', json={'conceptId': 999, 'title': 'orphan'})
    assert r.status_code == 400
    assert r.json()['errors'][0]['loc'] == ['conceptId']
    ok = strict_client.post('/api/experiments', json={'conceptId': 3, 'title': 'attached'})
    assert ok.status_code == 201
    assert ok.json()['id'] == 2
