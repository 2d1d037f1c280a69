from dataclasses import dataclass, field

from sqlmodel import Session, select

from hoist.errors import ValidationError
from hoist.models import Workout, WorkoutExercise, WorkoutSet, WorkoutStatus
from hoist.schemas import WorkoutDetail, WorkoutExerciseRead, WorkoutSetRead


@dataclass
class WorkoutAggregate:
    """A workout together with its exercises and sets, each ordered by position."""

    workout: Workout
    exercises: list[WorkoutExercise] = field(default_factory=list)
    sets_by_exercise: dict[int, list[WorkoutSet]] = field(default_factory=dict)

    @classmethod
    def load(cls, session: Session, workout: Workout) -> "WorkoutAggregate":
        exercises = list(
            session.exec(
                select(WorkoutExercise)
                .where(WorkoutExercise.workout_id == workout.id)
                .order_by(WorkoutExercise.position, WorkoutExercise.id)
            ).all()
        )
        sets_by_exercise: dict[int, list[WorkoutSet]] = {ex.id: [] for ex in exercises}
        if exercises:
            sets = session.exec(
                select(WorkoutSet)
                .where(WorkoutSet.workout_exercise_id.in_(list(sets_by_exercise)))
                .order_by(WorkoutSet.position, WorkoutSet.id)
            ).all()
            for s in sets:
                sets_by_exercise[s.workout_exercise_id].append(s)
        return cls(workout=workout, exercises=exercises, sets_by_exercise=sets_by_exercise)

    @property
    def is_in_progress(self) -> bool:
        return self.workout.status == WorkoutStatus.in_progress

    def require_in_progress(self, message: str) -> None:
        if not self.is_in_progress:
            raise ValidationError.single("status", message)

    def sets_for(self, exercise_id: int) -> list[WorkoutSet]:
        return self.sets_by_exercise.get(exercise_id, [])

    def next_set_position(self, exercise_id: int) -> int:
        return max((s.position for s in self.sets_for(exercise_id)), default=0) + 1

    def remove_exercise(self, session: Session, exercise: WorkoutExercise) -> None:
        """Delete an exercise and its sets. Flushes, does not commit."""
        for s in self.sets_by_exercise.pop(exercise.id, []):
            session.delete(s)
        session.flush()
        session.delete(exercise)
        session.flush()
        self.exercises = [ex for ex in self.exercises if ex is not exercise]

    def delete(self, session: Session) -> None:
        """Delete sets -> exercises -> workout (no ORM cascade). Flushes, does not commit."""
        for exercise in list(self.exercises):
            self.remove_exercise(session, exercise)
        session.delete(self.workout)
        session.flush()

    def to_detail(self) -> WorkoutDetail:
        w = self.workout
        exercises = sorted(self.exercises, key=lambda ex: (ex.position, ex.id))
        return WorkoutDetail(
            id=w.id,
            template_name=w.template_name,
            status=w.status,
            started_at=w.started_at,
            ended_at=w.ended_at,
            notes=w.notes,
            rating=w.rating,
            location_id=w.location_id,
            location_name=w.location_name,
            exercises=[
                WorkoutExerciseRead(
                    id=ex.id,
                    exercise_template_id=ex.exercise_template_id,
                    exercise_name=ex.exercise_name,
                    implement_type=ex.implement_type,
                    exercise_type=ex.exercise_type,
                    position=ex.position,
                    sets=[
                        WorkoutSetRead.model_validate(s, from_attributes=True)
                        for s in sorted(self.sets_for(ex.id), key=lambda s: s.position)
                    ],
                )
                for ex in exercises
            ],
        )


def resequence_after_removal(siblings: list[WorkoutSet], removed_position: int) -> int:
    """Shift every sibling after ``removed_position`` down by one.

    Earlier siblings are untouched. Returns how many were shifted.
    """
    shifted = 0
    for sibling in siblings:
        if sibling.position > removed_position:
            sibling.position -= 1
            shifted += 1
    return shifted
