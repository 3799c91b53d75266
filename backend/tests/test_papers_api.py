VALID_PAPER = {
    'title': 'Mean teachers are better role models',
    'authors': 'Antti Tarvainen, Harri Valpola',
    'year': 2017,
    'conference': 'NeurIPS',
    'concepts': ['semi-supervised-learning', 'consistency-regularization'],
}


def test_list_papers(client):
    r = client.get('/api/papers')
    assert r.status_code == 200
    assert [p['id'] for p in r.json()] == [1, 2, 3]


def test_get_paper_by_id(client):
    r = client.get('/api/papers/3')
    assert r.status_code == 200
    assert r.json()['conference'] == 'ICML'
    assert r.json()['concepts'] == ['self-supervised-learning', 'contrastive-learning']


def test_unknown_paper_is_404(client):
    r = client.get('/api/papers/99')
    assert r.status_code == 404
    assert r.json()['message'] == 'Paper not found'


def test_missing_title_is_400_and_does_not_skip_an_id(client):
    bad = {k: v for k, v in VALID_PAPER.items() if k != 'title'}
    r = client.post('/api/papers', json=bad)
    assert r.status_code == 400
    body = r.json()
    assert body['message'] == 'Invalid paper data'
    assert body['errors']
    assert body['errors'][0]['loc'] == ['title']
    created = client.post('/api/papers', json=VALID_PAPER)
    assert created.status_code == 201
    assert created.json()['id'] == 4
    assert len(client.get('/api/papers').json()) == 4


def test_year_and_concepts_are_type_checked(client):
    r = client.post('/api/papers', json={**VALID_PAPER, 'year': '2017', 'concepts': 'semi-supervised-learning'})
    assert r.status_code == 400
    fields = {e['loc'][0] for e in r.json()['errors']}
    assert fields == {'year', 'concepts'}


def test_related_papers_by_concept_tag(client):
    r = client.get('/api/papers/related', params={'concepts': ['contrastive-learning']})
    assert r.status_code == 200
    assert [p['id'] for p in r.json()] == [3]
    r = client.get('/api/papers/related', params={'concepts': ['self-supervised-learning', 'pseudo-labeling']})
    assert [p['id'] for p in r.json()] == [1, 2, 3]
    assert client.get('/api/papers/related').json() == []
