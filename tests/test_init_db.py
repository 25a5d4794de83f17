from init_db import seed_species


def test_seed_skips_existing_species(backend):
    outcome = seed_species()

    assert set(outcome.values()) == {'exists'}
    assert len(backend.tables['fern_species']) == 5


def test_seed_into_empty_table(backend):
    backend.tables['fern_species'] = []

    outcome = seed_species()

    assert set(outcome.values()) == {'added'}
    assert {row['slug'] for row in backend.tables['fern_species']} == set(outcome)


def test_seed_overwrite_restores_content(backend):
    row = next(row for row in backend.tables['fern_species'] if row['slug'] == 'boston-fern')
    row['habitat'] = 'edited'

    outcome = seed_species(overwrite=True)

    assert outcome['boston-fern'] == 'updated'
    assert row['habitat'] != 'edited'


def test_seed_reports_failures(backend):
    backend.tables['fern_species'] = []
    backend.fail('fern_species', 'insert')

    outcome = seed_species()

    assert set(outcome.values()) == {'failed'}
