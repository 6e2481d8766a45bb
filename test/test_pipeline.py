import logging

import pytest

from tidyground.compute import filter, replace_dummy_table, sort
from tidyground.errors import KeyNotFoundError, PipelineError
from tidyground.pipeline import Pipeline, Stage, compose
from tidyground.table import Table


@pytest.fixture
def scores():
    return Table.from_pydict({"id": [1, 2, 3], "score": [10, 9999, 20]})


def test_pipeline_runs_stages_in_order(scores):
    pipeline = (
        Pipeline()
        .then(replace_dummy_table, [9999])
        .then(filter, "score IS NOT NULL")
        .then(sort, "score", descending=True)
    )
    assert len(pipeline) == 3
    assert pipeline.run(scores).to_pydict() == {"id": [3, 1], "score": [20, 10]}
    assert pipeline(scores) == pipeline.run(scores)


def test_pipeline_is_immutable(scores):
    base = Pipeline().then(sort, "score")
    extended = base.then(filter, "score < 100")

    assert len(base) == 1
    assert len(extended) == 2
    assert base.run(scores).column("score").to_pylist() == [10, 20, 9999]
    assert extended.run(scores).column("score").to_pylist() == [10, 20]


def test_empty_pipeline_returns_input(scores):
    assert Pipeline().run(scores) is scores


def test_pipeline_failure_reports_stage(scores, caplog):
    pipeline = Pipeline().then(sort, "score").then(filter, "missing > 3").then(sort, "id")

    with caplog.at_level(logging.ERROR, logger="tidyground.pipeline"):
        with pytest.raises(PipelineError) as err:
            pipeline.run(scores)

    assert err.value.stage_index == 1
    assert err.value.stage_name == "tidyground.compute.filtering.filter"
    assert isinstance(err.value.__cause__, KeyNotFoundError)
    assert "Stage 1 (tidyground.compute.filtering.filter) failed" in caplog.text


def test_pipeline_stage_must_return_table(scores):
    pipeline = Pipeline([lambda table: table.num_rows])

    with pytest.raises(PipelineError) as err:
        pipeline.run(scores)
    assert err.value.stage_index == 0
    assert isinstance(err.value.__cause__, TypeError)


def test_pipeline_does_not_modify_input(scores):
    Pipeline().then(replace_dummy_table, [9999]).run(scores)
    assert scores.column("score").to_pylist() == [10, 9999, 20]


def test_stage():
    stage = Stage(sort, "score", descending=True)
    assert stage.name == "tidyground.compute.sorting.sort"
    assert str(stage) == "tidyground.compute.sorting.sort('score', descending=True)"

    with pytest.raises(TypeError):
        Stage("sort")


def test_pipeline_str():
    assert str(Pipeline()) == "Pipeline()"
    pipeline = Pipeline().then(filter, "score > 3").then(sort, "score")
    assert str(pipeline) == (
        "tidyground.compute.filtering.filter('score > 3') -> tidyground.compute.sorting.sort('score')"
    )


def test_compose(scores):
    result = compose(scores, [Stage(filter, "score < 100"), lambda table: sort(table, "id")])
    assert result.column("id").to_pylist() == [1, 3]
