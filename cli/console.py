"""Console UI for wordcraft application."""

import time

from core.config import MASTERY_THRESHOLD
from cli.api_client import WordCraftAPIClient

MAX_GAME_ATTEMPTS = 3


class ConsoleUI:
    """Console user interface: pick a word list, then play its story."""

    def __init__(self, client: WordCraftAPIClient, theme: str = 'space'):
        self.client = client
        self.theme = theme

    def print_content(self, content: dict):
        """Print themed intro, checkpoint or finale content."""
        print('\n' + '=' * 60)
        print(f"{content.get('emoji', '')} {content['title']}")
        print('=' * 60)
        print(content['narrative'])
        print('=' * 60)

    def print_word_stats(self, word_stats: dict):
        print('-' * 40)
        for word, stats in word_stats.items():
            mark = '*' if stats['confidence'] >= MASTERY_THRESHOLD else ' '
            print(f"  {mark} {word:<15} {stats['confidence']:>3}%")
        print('-' * 40)

    def print_finale(self):
        finale = self.client.get_finale()
        stats = finale['stats']
        print('\nSTORY SUMMARY')
        print(f"  Words mastered: {stats['words_mastered']}/{stats['total_words']}")
        print(f"  Games played: {stats['games_played']}")
        print(f"  Accuracy: {stats['accuracy'] * 100:.0f}%")
        print(f"  Time: {stats['time_display']}")
        print(f"  Average confidence: {stats['average_confidence']:.0f}%")

    def choose_word_list(self) -> dict | None:
        """Let the user pick an existing list, create one, or import a shared one."""
        lists = self.client.list_word_lists()
        print('\nWord lists:')
        for i, wl in enumerate(lists, start=1):
            print(f"  {i}. {wl['name']} ({len(wl['words'])} words)")
        print('  n. New list')
        print('  i. Import shared list')

        while True:
            choice = input('==> ').strip().lower()
            if choice == 'exit':
                return None
            if choice == 'n':
                name = input('Name: ').strip()
                words = input('Words (comma separated): ').split(',')
                try:
                    return self.client.create_word_list(name, words)
                except Exception as e:
                    print(f"Error creating list: {e}")
                    continue
            if choice == 'i':
                data = input('Share code: ').strip()
                try:
                    return self.client.import_shared_list(data)
                except Exception as e:
                    print(f"Error importing list: {e}")
                    continue
            if choice.isdigit() and 1 <= int(choice) <= len(lists):
                return lists[int(choice) - 1]
            print('Please pick a list number, "n", "i" or "exit".')

    def play_game(self, beat: dict) -> dict:
        """Console spelling game: type the word, with up to three tries."""
        word = beat['word']
        info = beat.get('extraWordInfo')
        print(f"\n{beat['narrative']}")
        if info:
            print(f"Meaning: {info['meaning']}")
        print(f"The word has {len(word)} letters. Type \"hint\" for help.")

        attempts = 0
        hints = 0
        start = time.time()
        correct = False
        while attempts < MAX_GAME_ATTEMPTS:
            answer = input('==> ').strip()
            if answer.lower() == 'hint':
                hints += 1
                if info and hints == 1:
                    print(f"Hint: {info['hint']}")
                else:
                    print(f"Hint: it starts with \"{word[:hints]}\"")
                continue
            attempts += 1
            if answer.lower() == word.lower():
                correct = True
                print('Correct!')
                break
            print('Not quite, try again.' if attempts < MAX_GAME_ATTEMPTS else f'The word was "{word}".')

        time_ms = int((time.time() - start) * 1000)
        return self.client.submit_game(word, correct, time_ms, attempts, hints)

    def play_story(self, data: dict):
        """Walk through the story until the finale."""
        while True:
            view = data['view']
            state = view['state']

            if state == 'intro':
                self.print_content(view['content'])
                input('Press Enter to begin...')
                data = self.client.begin_story()

            elif state == 'narrative':
                print(f"\n{view['beat']['narrative']}")
                input('(Enter)')
                data = self.client.continue_narrative()

            elif state == 'choice':
                beat = view['beat']
                print(f"\n{beat['narrative']}\n{beat['question']}")
                for i, option in enumerate(beat['options'], start=1):
                    print(f"  {i}. {option}")
                choice = ''
                while choice not in ('1', '2'):
                    choice = input('==> ').strip()
                data = self.client.make_choice(int(choice) - 1)

            elif state == 'game':
                data = self.play_game(view['beat'])
                self.print_word_stats(data['word_stats'])

            elif state == 'checkpoint':
                self.print_content(view['content'])
                skip = input('Press Enter to continue ("s" to skip)... ').strip().lower() == 's'
                data = self.client.leave_checkpoint(skip)

            else:
                self.print_content(view['content'])
                self.print_finale()
                return

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to wordcraft server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        try:
            due = self.client.get_due_words()
            if due['words']:
                print(f"Words due for review: {', '.join(due['words'][:10])}")
        except Exception as e:
            print(f"Error getting review words: {e}")

        word_list = self.choose_word_list()
        if word_list is None:
            print('Goodbye!')
            return

        print(f"\nCreating a {self.theme} story for \"{word_list['name']}\"...")
        try:
            data = self.client.start_story(word_list['id'], self.theme)
        except Exception as e:
            print(f"Error starting story: {e}")
            return

        self.play_story(data)
        print('Goodbye!')
