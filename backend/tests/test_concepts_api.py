def test_list_concepts_in_insertion_order(client):
    r = client.get('/api/concepts')
    assert r.status_code == 200
    assert [c['id'] for c in r.json()] == [1, 2, 3]


def test_concept_detail_joins_related_content(client):
    r = client.get('/api/concepts/semi-supervised-learning')
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {'concept', 'theory', 'codeImplementations', 'experiments'}
    assert body['concept']['id'] == 1
    assert body['theory'] is not None
    assert body['theory']['conceptId'] == 1
    assert len(body['codeImplementations']) == 2
    assert len(body['experiments']) == 1


def test_concept_detail_without_theory_or_code(client):
    body = client.get('/api/concepts/contrastive-learning').json()
    assert body['theory'] is None
    assert body['codeImplementations'] == []
    assert body['experiments'] == []


def test_unknown_concept_is_404_with_message(client):
    r = client.get('/api/concepts/does-not-exist')
    assert r.status_code == 404
    assert r.json()['message'] == 'Concept not found'


def test_category_filter_matches_direct_filter(client):
    r = client.get('/api/concepts/category/self-supervised')
    assert r.status_code == 200
    filtered = r.json()
    assert filtered
    assert all(c['category'] == 'self-supervised' for c in filtered)
    everything = client.get('/api/concepts').json()
    assert len(filtered) == len([c for c in everything if c['category'] == 'self-supervised'])


def test_unknown_category_is_empty_list(client):
    r = client.get('/api/concepts/category/reinforcement')
    assert r.status_code == 200
    assert r.json() == []


def test_create_concept_then_fetch_by_slug(client):
    payload = {'slug': 'mean-teacher', 'title': 'Mean Teacher', 'category': 'semi-supervised'}
    r = client.post('/api/concepts', json=payload)
    assert r.status_code == 201
    created = r.json()
    assert created['id'] == 4
    assert created['description'] is None
    assert 'updatedAt' in created
    detail = client.get('/api/concepts/mean-teacher').json()
    assert detail['concept']['id'] == 4


def test_duplicate_slug_rejected_without_consuming_an_id(client):
    dup = {'slug': 'contrastive-learning', 'title': 'Again', 'category': 'self-supervised'}
    r = client.post('/api/concepts', json=dup)
    assert r.status_code == 409
    assert 'contrastive-learning' in r.json()['message']
    ok = client.post('/api/concepts', json={'slug': 'byol', 'title': 'BYOL', 'category': 'self-supervised'})
    assert ok.json()['id'] == 4
    slugs = [c['slug'] for c in client.get('/api/concepts').json()]
    assert slugs.count('contrastive-learning') == 1


def test_invalid_concept_body_lists_field_errors(client):
    r = client.post('/api/concepts', json={'slug': 'Not A Slug', 'title': 'T'})
    assert r.status_code == 400
    body = r.json()
    assert body['message'] == 'Invalid concept data'
    fields = {e['loc'][0] for e in body['errors']}
    assert fields == {'slug', 'category'}


def test_non_object_body_is_400(client):
    r = client.post('/api/concepts', json=['slug'])
    assert r.status_code == 400
    assert r.json()['errors']


def test_request_id_header_exists(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.headers['X-Request-ID'] == 'abc123'
    assert 'X-Request-ID' in client.get('/api/concepts').headers
