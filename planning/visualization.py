"""
Gantt chart rendering of the computed schedule
"""

from PIL import Image, ImageDraw, ImageFont
from datetime import timedelta

CRITICAL_FILL = '#ff7070'
CRITICAL_OUTLINE = '#cc0000'
NORMAL_FILL = '#70a0ff'
NORMAL_OUTLINE = '#0055cc'
FLOAT_FILL = '#d9e4ff'


def load_fonts():
    """Loads Arial or DejaVuSans, falling back to the default PIL font."""
    for font_name in ("Arial.ttf", "DejaVuSans.ttf"):
        try:
            return {
                'title': ImageFont.truetype(font_name, 16),
                'task': ImageFont.truetype(font_name, 12),
                'small': ImageFont.truetype(font_name, 10)
            }
        except IOError:
            continue
    default = ImageFont.load_default()
    return {'title': default, 'task': default, 'small': default}


def generate_gantt_chart(tasks, result, title="Project schedule"):
    """
    Generates a Gantt chart of the earliest schedule.

    Critical tasks are drawn red and hatched; the float of
    non-critical tasks is drawn as a light bar after the task.

    Args:
        tasks: List of ScheduleTask
        result: CriticalPathResult for the tasks
        title: Chart title

    Returns:
        PIL Image object with the Gantt chart
    """
    fonts = load_fonts()

    rows = [task for task in tasks if task.id in result.schedule_data]
    if not rows:
        image = Image.new('RGB', (400, 200), 'white')
        draw = ImageDraw.Draw(image)
        draw.text((10, 10), "No tasks to display", fill="black", font=fonts['task'])
        return image

    # Critical tasks first, then by earliest start
    rows.sort(key=lambda t: (t.id not in result.critical_task_ids, result.schedule_data[t.id].earliest_start))

    start_date = min(result.schedule_data[t.id].earliest_start for t in rows)
    end_date = max(result.schedule_data[t.id].latest_finish for t in rows)
    total_days = max(1, (end_date - start_date).days)

    # Chart parameters
    task_height = 30
    task_spacing = 15
    left_margin = 180
    top_margin = 80
    right_margin = 50
    bottom_margin = 60
    day_width = 30 if total_days <= 60 else 12

    width = left_margin + (total_days * day_width) + right_margin
    height = top_margin + (len(rows) * (task_height + task_spacing)) + bottom_margin

    image = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(image)

    text_width = draw.textlength(title, font=fonts['title'])
    draw.text((max(0, (width - int(text_width)) // 2), 10), title, fill="black", font=fonts['title'])

    draw_time_scale(draw, start_date, total_days, left_margin, top_margin, day_width, height - bottom_margin,
                    fonts['small'])

    for index, task in enumerate(rows):
        y = top_margin + index * (task_height + task_spacing)
        draw_task(draw, task, result.schedule_data[task.id], task.id in result.critical_task_ids, y, start_date,
                  left_margin, day_width, task_height, fonts)

    draw_legend(draw, height - bottom_margin + 10, fonts['task'])

    return image


def draw_time_scale(draw, start_date, total_days, left_margin, top_margin, day_width, bottom, font):
    """Draws date labels, grid lines and weekend shading."""
    label_step = 1 if day_width >= 30 else 7
    for day in range(total_days + 1):
        current_date = start_date + timedelta(days=day)
        x = left_margin + day * day_width

        # Weekend highlighting (Saturday=5, Sunday=6)
        if current_date.weekday() >= 5 and day < total_days:
            draw.rectangle([(x, top_margin), (x + day_width, bottom)], fill='#f5f5f5', outline=None)

        draw.line([(x, top_margin), (x, bottom)], fill='#e0e0e0', width=1)
        if day % label_step == 0:
            draw.text((x - 10, top_margin - 20), current_date.strftime('%d.%m'), fill='black', font=font)


def draw_task(draw, task, timing, is_critical, y, start_date, left_margin, day_width, task_height, fonts):
    """Draws one task bar with its float."""
    task_name = task.name if len(task.name) <= 25 else task.name[:22] + "..."
    draw.text((10, y + 10), task_name, font=fonts['task'], fill='black')

    start_x = left_margin + (timing.earliest_start - start_date).days * day_width
    end_x = left_margin + (timing.earliest_finish - start_date).days * day_width
    # Zero-duration tasks (milestones) still get a visible mark
    end_x = max(end_x, start_x + 4)

    if timing.float > 0:
        float_end_x = left_margin + (timing.latest_finish - start_date).days * day_width
        draw.rectangle([end_x, y + 12, float_end_x, y + task_height - 12], fill=FLOAT_FILL, outline=None)

    fill_color, outline_color = (CRITICAL_FILL, CRITICAL_OUTLINE) if is_critical else (NORMAL_FILL, NORMAL_OUTLINE)
    draw.rectangle([start_x, y + 5, end_x, y + task_height - 5], fill=fill_color, outline=outline_color, width=2)

    if is_critical:
        draw_hatching(draw, start_x, y + 5, end_x, y + task_height - 5)

    progress_text = f"{int(task.progress or 0)}%"
    text_width = draw.textlength(progress_text, font=fonts['small'])
    if end_x - start_x > text_width + 6:
        draw.text((start_x + (end_x - start_x - int(text_width)) // 2, y + 10), progress_text,
                  font=fonts['small'], fill='white')


def draw_hatching(draw, left, top, right, bottom):
    """Diagonal hatching for critical tasks."""
    for line_x in range(int(left), int(right) - 7, 7):
        draw.line([(line_x, top), (line_x + 7, bottom)], fill=CRITICAL_OUTLINE, width=1)


def draw_legend(draw, legend_y, font):
    draw.rectangle([20, legend_y, 50, legend_y + 20], fill=CRITICAL_FILL, outline=CRITICAL_OUTLINE, width=2)
    draw_hatching(draw, 20, legend_y, 50, legend_y + 20)
    draw.text((55, legend_y + 3), "Critical task", font=font, fill='black')

    draw.rectangle([180, legend_y, 210, legend_y + 20], fill=NORMAL_FILL, outline=NORMAL_OUTLINE, width=2)
    draw.text((215, legend_y + 3), "Task", font=font, fill='black')

    draw.rectangle([290, legend_y + 7, 320, legend_y + 13], fill=FLOAT_FILL, outline=None)
    draw.text((325, legend_y + 3), "Float", font=font, fill='black')
