from planning.network import compute_critical_path
from planning.visualization import generate_gantt_chart


def test_gantt_chart_size(diamond_tasks):
    image = generate_gantt_chart(diamond_tasks, compute_critical_path(diamond_tasks), title="Diamond")

    # 9 days at 30px plus margins, 4 rows of 45px plus margins
    assert image.size == (500, 320)
    assert image.mode == 'RGB'


def test_gantt_chart_without_tasks():
    image = generate_gantt_chart([], compute_critical_path([]))

    assert image.size == (400, 200)
